import pytest

from modules.configuration_pool import CandidateConfiguration, ConfigurationPool
from modules.schedule_calculator import build_schedule
from utils.exceptions import ConfigurationError


def _candidates(n):
    return [CandidateConfiguration(mst_key=k, model_name="SGDRegressor", params={'alpha': k}) for k in range(1, n + 1)]


class TestConfigurationPool:

    def test_contiguous_ranges(self):
        pool = ConfigurationPool.from_schedule(build_schedule(9, 3))

        assert pool.brackets == [2, 1, 0]
        assert pool.range_of(2) == (1, 9)
        assert pool.range_of(1) == (10, 12)
        assert pool.range_of(0) == (13, 15)
        assert pool.total == 15
        assert list(pool.keys_of(1)) == [10, 11, 12]

    def test_ranges_partition_the_pool(self):
        pool = ConfigurationPool.from_schedule(build_schedule(81, 3))
        keys = [k for b in pool.brackets for k in pool.keys_of(b)]
        assert keys == list(range(1, pool.total + 1))

    def test_bracket_of(self):
        pool = ConfigurationPool({1: 3, 0: 2})
        assert [pool.bracket_of(k) for k in range(1, 6)] == [1, 1, 1, 0, 0]
        with pytest.raises(KeyError):
            pool.bracket_of(6)
        with pytest.raises(KeyError):
            pool.bracket_of(0)

    def test_unknown_bracket(self):
        pool = ConfigurationPool({1: 3, 0: 2})
        with pytest.raises(KeyError, match="Unknown bracket"):
            pool.range_of(4)

    def test_order_independent_of_mapping_order(self):
        pool = ConfigurationPool({0: 2, 1: 3})
        assert pool.range_of(1) == (1, 3)
        assert pool.range_of(0) == (4, 5)

    @pytest.mark.parametrize("counts", [{}, {1: 0}, {1: 3, 0: -1}])
    def test_invalid_counts(self, counts):
        with pytest.raises(ConfigurationError):
            ConfigurationPool(counts)

    def test_assign(self):
        pool = ConfigurationPool({1: 3, 0: 2})
        assert not pool.is_assigned
        pool.assign(_candidates(5))

        assert pool.is_assigned
        assert pool.configuration(4).params == {'alpha': 4}
        assert pool.configuration(99) is None

    def test_assign_wrong_count(self):
        pool = ConfigurationPool({1: 3, 0: 2})
        with pytest.raises(ConfigurationError, match="expects 5 candidates"):
            pool.assign(_candidates(4))

    def test_assign_duplicate_ids(self):
        pool = ConfigurationPool({1: 3, 0: 2})
        candidates = _candidates(4) + [CandidateConfiguration(mst_key=1, model_name="SGDRegressor")]
        with pytest.raises(ConfigurationError, match="unique"):
            pool.assign(candidates)

    def test_describe(self):
        pool = ConfigurationPool({1: 3, 0: 2})
        assert pool.describe() == [
            {'bracket': 1, 'lower': 1, 'upper': 3, 'count': 3},
            {'bracket': 0, 'lower': 4, 'upper': 5, 'count': 2},
        ]
