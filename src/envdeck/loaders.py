# MIT License
#
# Copyright (c) 2025 Democratize Technology
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Settings registry and the lazy proxy applications read settings through.

A ``LoaderRegistry`` holds resolved settings instances by name and a flag
recording whether it has been initialized. ``SettingsProxy`` puts a
namespace in front of a registry:

    settings = create_settings_proxy({"smtp": SmtpSettings, "db": load_db})
    settings.smtp.host           # loads fresh on every access until initialized

    await settings.override({"db": fetch_db_from_vault})
    settings.db.password         # resolved once, served from the registry

Before initialization an access invokes the proxy's own loader each time, or
fails with ``SettingsAccessedBeforeInitializationError``. After
``initialize()`` the resolved instances are served without calling any loader
again; a name the registry never resolved falls back to the proxy's loader or
fails with ``SettingsKeyNotInitializedError``.

There is no timeout on loaders: a loader that never completes keeps
``initialize()`` waiting.
"""

import asyncio
import functools
import inspect
import json
import logging
import threading
from collections import deque
from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import Any, Union

from .exceptions import (
    SettingsAccessedBeforeInitializationError,
    SettingsKeyNotInitializedError,
    SettingsSerializationError,
)
from .settings import BaseSettings, json_default

logger = logging.getLogger(__name__)

Loader = Callable[[], Union[BaseSettings, Awaitable[BaseSettings]]]
LoaderSpec = Union[Loader, type[BaseSettings]]

_UNSET: Any = object()


def as_loader(loader: LoaderSpec) -> Loader:
    """Accept a loader callable or a settings class (loaded with ``cls.load``)."""
    if isinstance(loader, type) and issubclass(loader, BaseSettings):
        return loader.load
    if not callable(loader):
        raise TypeError(f"Settings loader must be callable, got {type(loader).__name__}")
    return loader


async def _invoke(loader: Loader) -> Any:
    result = loader()
    if inspect.isawaitable(result):
        result = await result
    return result


def _wake(future: "asyncio.Future[None]") -> None:
    if not future.done():
        future.set_result(None)


class LoaderRegistry:
    """Resolved settings by name, plus the initialized flag and ready queue."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._resolved: dict[str, Any] = {}
        self._initialized = False
        self._waiters: deque[Any] = deque()

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._resolved.get(key, default)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._resolved)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._resolved

    async def initialize(self, loaders: Mapping[str, LoaderSpec]) -> None:
        """Invoke every loader once, concurrently, then publish all results.

        Results are published together and only when every loader succeeded;
        if one fails its exception propagates and the registry is unchanged.
        Names absent from ``loaders`` keep whatever was published before.
        """
        keys = list(loaders)
        calls = [as_loader(loaders[key]) for key in keys]
        logger.debug("Initializing settings loaders: %s", keys)

        values = await asyncio.gather(*(_invoke(call) for call in calls))

        with self._lock:
            self._resolved.update(zip(keys, values))
            self._initialized = True
            waiters = list(self._waiters)
            self._waiters.clear()

        logger.debug("Settings registry initialized with %d resolved keys", len(self.keys()))
        self._notify(waiters)

    def on_ready(self, callback: Callable[[], Any]) -> None:
        """Call ``callback`` once the registry is initialized (now, if it already is)."""
        with self._lock:
            if not self._initialized:
                self._waiters.append(callback)
                return
        callback()

    async def ready(self) -> None:
        """Wait until the registry is initialized.

        Waiters are notified in the order they started waiting, interleaved
        with ``on_ready`` callbacks. When each awaiting task resumes is up to
        the event loop. Cancelling the caller abandons the wait without
        affecting initialization.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._initialized:
                return
            future: asyncio.Future[None] = loop.create_future()
            self._waiters.append(future)
        await future

    def _notify(self, waiters: list[Any]) -> None:
        # Best effort: one failing waiter never blocks the ones queued after it
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        for waiter in waiters:
            if isinstance(waiter, asyncio.Future):
                if waiter.get_loop() is running:
                    _wake(waiter)
                    continue
                try:
                    waiter.get_loop().call_soon_threadsafe(_wake, waiter)
                except RuntimeError:
                    logger.warning("Dropped ready waiter bound to a closed event loop")
                continue
            try:
                waiter()
            except Exception:
                logger.exception("Settings ready callback %r failed", waiter)

    def reset(self) -> None:
        """Return to the uninitialized state, dropping resolved values and waiters."""
        with self._lock:
            self._resolved.clear()
            self._initialized = False
            self._waiters.clear()
        logger.debug("Settings registry reset")


_default_registry = LoaderRegistry()


def get_default_registry() -> LoaderRegistry:
    return _default_registry


async def initialize_loaders(loaders: Mapping[str, LoaderSpec]) -> None:
    """Initialize the process-wide registry; see ``LoaderRegistry.initialize``."""
    await _default_registry.initialize(loaders)


def settings_initialized() -> bool:
    return _default_registry.initialized


def get_initialized_setting(key: str) -> Any:
    """Resolved instance for ``key`` in the process-wide registry, or None."""
    return _default_registry.get(key)


def get_initialized_keys() -> list[str]:
    return _default_registry.keys()


def reset_initialization_for_test() -> None:
    _default_registry.reset()


class SettingsProxy:
    """Namespace of settings instances backed by a ``LoaderRegistry``.

    Any attribute other than the proxy's own methods is looked up as a
    settings name. Item access always performs the lookup, so a setting named
    like a method is still reachable as ``proxy["keys"]``.
    """

    def __init__(
        self,
        loaders: Mapping[str, LoaderSpec] | None = None,
        *,
        registry: LoaderRegistry | None = None,
    ) -> None:
        self._loaders: dict[str, Loader] = {
            key: as_loader(loader) for key, loader in (loaders or {}).items()
        }
        self._registry = registry if registry is not None else _default_registry

    def get(self, key: str) -> Any:
        """Resolved instance, or the local loader's fresh result.

        Raises:
            SettingsAccessedBeforeInitializationError: Uninitialized and no local loader
            SettingsKeyNotInitializedError: Initialized, unresolved and no local loader
        """
        registry = self._registry
        initialized = registry.initialized
        if initialized:
            value = registry.get(key, _UNSET)
            if value is not _UNSET:
                return value

        loader = self._loaders.get(key)
        if loader is not None:
            return loader()
        if initialized:
            raise SettingsKeyNotInitializedError(key)
        raise SettingsAccessedBeforeInitializationError(key)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def keys(self) -> list[str]:
        """Local loader names, plus resolved names once initialized."""
        names = list(self._loaders)
        if self._registry.initialized:
            names.extend(key for key in self._registry.keys() if key not in self._loaders)
        return names

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, key: object) -> bool:
        return key in self.keys()

    def __len__(self) -> int:
        return len(self.keys())

    def is_initialized(self) -> bool:
        return self._registry.initialized

    async def override(self, loaders: Mapping[str, LoaderSpec]) -> None:
        """Initialize the backing registry with ``loaders``."""
        await self._registry.initialize(loaders)

    async def ready(self) -> None:
        await self._registry.ready()

    def to_dict(self) -> dict[str, Any]:
        """Every known setting as plain data, secrets redacted.

        Raises:
            SettingsSerializationError: A value is still an unresolved awaitable
        """
        result: dict[str, Any] = {}
        for key in self.keys():
            value = self.get(key)
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                raise SettingsSerializationError(key)
            serialize = getattr(value, "to_dict", None)
            result[key] = serialize() if callable(serialize) else value
        return result

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=json_default)

    def __repr__(self) -> str:
        state = "initialized" if self._registry.initialized else "uninitialized"
        return f"<SettingsProxy {state} keys={self.keys()!r}>"


def create_settings_proxy(loaders: Mapping[str, LoaderSpec] | None = None) -> SettingsProxy:
    """Proxy over the process-wide registry."""
    return SettingsProxy(loaders)


def memoize_loader(loader: LoaderSpec) -> Loader:
    """Cache the first successful result of ``loader``.

    Works for plain and ``async`` loaders, so access before initialization
    does not load again on every read. Failures are not cached. Concurrent
    first calls to an async loader may each invoke it once.
    """
    loader = as_loader(loader)
    cache: dict[str, Any] = {}

    if inspect.iscoroutinefunction(loader):

        @functools.wraps(loader)
        async def memoized_async() -> Any:
            if "value" not in cache:
                cache["value"] = await loader()
            return cache["value"]

        return memoized_async

    lock = threading.Lock()

    @functools.wraps(loader)
    def memoized() -> Any:
        with lock:
            if "value" not in cache:
                cache["value"] = loader()
            return cache["value"]

    return memoized
