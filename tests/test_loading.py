"""Tests for the loading state registry."""

from unittest.mock import MagicMock

import pytest

from contaflix.loading import LoadingRegistry
from contaflix.notifications import NotificationCenter, NotificationVariant
from contaflix.result import Err, Ok


class TestLoadingFlags:
    """Tests for the flag operations."""

    def test_unknown_key_not_loading(self):
        """Test that absent keys read as False."""
        assert LoadingRegistry().is_loading("clients") is False

    def test_set_and_unset(self):
        """Test toggling a key."""
        registry = LoadingRegistry()
        registry.set_loading("clients", True)

        assert registry.is_loading("clients") is True

        registry.set_loading("clients", False)
        assert registry.is_loading("clients") is False
        assert registry.active_keys() == []

    def test_any_loading(self):
        """Test that any-loading is the OR of all keys."""
        registry = LoadingRegistry()
        assert registry.is_any_loading() is False

        registry.set_loading("a", True)
        registry.set_loading("b", True)
        registry.set_loading("a", False)
        assert registry.is_any_loading() is True
        assert registry.active_keys() == ["b"]

        registry.set_loading("b", False)
        assert registry.is_any_loading() is False

    def test_clear_all(self):
        """Test that clearing resets every key."""
        registry = LoadingRegistry()
        registry.set_loading("a", True)
        registry.set_loading("b", True)

        registry.clear_all_loading()

        assert registry.is_any_loading() is False


class TestExecuteWithLoading:
    """Tests for execute_with_loading."""

    @pytest.mark.asyncio
    async def test_success_returns_ok(self):
        """Test that a successful operation returns Ok and clears the flag."""
        registry = LoadingRegistry()
        seen = []

        async def operation():
            seen.append(registry.is_loading("payroll"))
            return [1, 2]

        result = await registry.execute_with_loading("payroll", operation)

        assert result == Ok([1, 2])
        assert seen == [True]
        assert registry.is_loading("payroll") is False

    @pytest.mark.asyncio
    async def test_none_result_is_still_ok(self):
        """Test that a legitimate None is distinguishable from failure."""
        registry = LoadingRegistry()

        async def operation():
            return None

        result = await registry.execute_with_loading("k", operation)

        assert result.is_ok()
        assert result.unwrap() is None

    @pytest.mark.asyncio
    async def test_failure_returns_err_and_clears(self):
        """Test that errors are captured, logged and the flag cleared."""
        log = MagicMock()
        registry = LoadingRegistry(log=log)
        error = RuntimeError("network down")

        async def operation():
            raise error

        result = await registry.execute_with_loading("invites", operation)

        assert result == Err(error)
        assert registry.is_loading("invites") is False
        log.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_failure_notifies_when_titled(self):
        """Test that an error toast is sent when a title is given."""
        center = NotificationCenter(buffer_size=10)
        registry = LoadingRegistry(notifier=center)

        async def operation():
            raise ValueError("bad")

        await registry.execute_with_loading("k", operation, error_title="Falha ao salvar")

        assert center.recent[0].title == "Falha ao salvar"
        assert center.recent[0].variant is NotificationVariant.DESTRUCTIVE

    @pytest.mark.asyncio
    async def test_loading_context_manager(self):
        """Test the async context manager cleans up on error."""
        registry = LoadingRegistry()

        with pytest.raises(KeyError):
            async with registry.loading("k"):
                assert registry.is_loading("k")
                raise KeyError("x")

        assert registry.is_loading("k") is False
