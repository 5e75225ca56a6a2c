"""Unit tests for ContractRegistry."""

from unittest.mock import MagicMock

from dexpulse.src.ContractRegistry import ContractRegistry
from dexpulse.src.errors import InitializationFailure
from dexpulse.src.ExchangeConfig import UNISWAP_V2, ExchangeDescriptor


class TestContractRegistry:
    """Test exchange registration and handle lookup."""

    def test_register_builds_handles(self, chain) -> None:
        registry = ContractRegistry(chain)
        exchange = ExchangeDescriptor("uniswap", "0xr1", "0xf1")

        assert registry.register(exchange) is True
        assert registry.is_registered("uniswap")
        assert registry.get_router("uniswap").address == "0xr1"
        assert registry.get_factory("uniswap").address == "0xf1"
        assert registry.get_factory("uniswap").abi is UNISWAP_V2.factory_abi
        assert registry.exchanges == [exchange]

    def test_unknown_exchange_has_no_handles(self, chain) -> None:
        registry = ContractRegistry(chain)
        assert registry.get_router("nope") is None
        assert registry.get_factory("nope") is None
        assert not registry.is_registered("nope")

    def test_malformed_address_skips_only_that_exchange(self, chain) -> None:
        """One broken exchange must not prevent the others from registering."""
        registry = ContractRegistry(chain)
        broken = ExchangeDescriptor("broken", "not-an-address", "0xf0")
        good = ExchangeDescriptor("good", "0xr1", "0xf1")

        registered = registry.register_all([broken, good])

        assert registered == ["good"]
        assert not registry.is_registered("broken")
        assert registry.get_factory("broken") is None
        assert isinstance(registry.failures["broken"], InitializationFailure)
        assert "Malformed contract address" in str(registry.failures["broken"])

    def test_chain_error_is_contained(self) -> None:
        chain = MagicMock()
        chain.contract.side_effect = ConnectionError("endpoint unreachable")
        registry = ContractRegistry(chain)

        assert registry.register(ExchangeDescriptor("x", "0xr", "0xf")) is False
        assert registry.failures["x"].exchange == "x"

    def test_duplicate_name_rejected(self, chain) -> None:
        registry = ContractRegistry(chain)
        registry.register(ExchangeDescriptor("x", "0xr1", "0xf1"))

        assert registry.register(ExchangeDescriptor("x", "0xr2", "0xf2")) is False
        assert registry.get_factory("x").address == "0xf1"
        assert "Duplicate exchange name" in str(registry.failures["x"])

    def test_pool_handles_cached(self, chain) -> None:
        registry = ContractRegistry(chain)
        exchange = ExchangeDescriptor("x", "0xr", "0xf")
        registry.register(exchange)

        first = registry.get_pool(exchange, "0xPool")
        second = registry.get_pool(exchange, "0xpool")

        assert first is second
        assert first.abi is UNISWAP_V2.pair_abi
