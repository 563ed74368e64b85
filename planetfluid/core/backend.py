"""
Backend selection and dispatch system for the particle sandbox.

Two backends are supported:
1. NUMPY - vectorized NumPy, always available, reference implementation
2. NUMBA - JIT-compiled pair loops, faster once particle counts reach the thousands

The backend can be selected globally or per-function call.
"""

import enum
import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numba

logger = logging.getLogger(__name__)


class Backend(enum.Enum):
    """Available computation backends."""
    NUMPY = "numpy"  # NumPy (always available)
    NUMBA = "numba"  # Numba JIT


@dataclass
class BackendInfo:
    """Information about a backend."""
    backend: Backend
    available: bool
    device_name: str = "CPU"


class BackendManager:
    """Manages backend selection and dispatching."""

    def __init__(self):
        self._current_backend = Backend.NUMPY
        self._available_backends: Dict[Backend, BackendInfo] = {}
        self._implementations: Dict[str, Dict[Backend, Callable]] = {}
        self._detect_backends()

    def _detect_backends(self):
        """Record which backends can run on this machine."""
        self._available_backends[Backend.NUMPY] = BackendInfo(
            backend=Backend.NUMPY,
            available=True,
            device_name="CPU (NumPy)"
        )
        self._available_backends[Backend.NUMBA] = BackendInfo(
            backend=Backend.NUMBA,
            available=True,
            device_name=f"CPU (Numba {numba.__version__})"
        )

    @property
    def current_backend(self) -> Backend:
        """Get current backend."""
        return self._current_backend

    @property
    def available_backends(self) -> list[Backend]:
        """Get list of available backends."""
        return [b for b, info in self._available_backends.items() if info.available]

    def set_backend(self, backend: Backend) -> bool:
        """Set the current backend.

        Args:
            backend: Backend to use

        Returns:
            True if backend was set successfully
        """
        if not self._available_backends[backend].available:
            warnings.warn(f"Backend {backend.value} not available, keeping {self._current_backend.value}")
            return False

        self._current_backend = backend
        logger.info("Backend set to: %s", self._available_backends[backend].device_name)
        return True

    def auto_select_backend(self, n_particles: int) -> Backend:
        """Pick NumPy for small systems and Numba once the pair loops dominate."""
        if self._available_backends[Backend.NUMBA].available and n_particles > 2000:
            return Backend.NUMBA
        return Backend.NUMPY

    def register_implementation(self, function_name: str, backend: Backend,
                                implementation: Callable):
        """Register a backend-specific implementation."""
        if function_name not in self._implementations:
            self._implementations[function_name] = {}
        self._implementations[function_name][backend] = implementation

    def get_implementation(self, function_name: str,
                           backend: Optional[Backend] = None) -> Callable:
        """Get implementation for a function.

        Args:
            function_name: Name of the function
            backend: Backend to use (None for current)

        Returns:
            Implementation function

        Raises:
            ValueError: If no implementation found
        """
        if backend is None:
            backend = self._current_backend

        if function_name not in self._implementations:
            raise ValueError(f"No implementations registered for {function_name}")

        if backend in self._implementations[function_name]:
            return self._implementations[function_name][backend]

        # Fall back to NumPy
        if Backend.NUMPY in self._implementations[function_name]:
            warnings.warn(f"No {backend.value} implementation for {function_name}, using numpy")
            return self._implementations[function_name][Backend.NUMPY]

        raise ValueError(f"No implementation found for {function_name}")

    def dispatch(self, function_name: str, *args, backend: Optional[Backend] = None, **kwargs):
        """Dispatch a function call to the appropriate backend."""
        impl = self.get_implementation(function_name, backend)
        return impl(*args, **kwargs)


# Global backend manager instance
_backend_manager = BackendManager()


def set_backend(backend: str) -> bool:
    """Set the global backend.

    Args:
        backend: 'numpy' or 'numba'

    Returns:
        True if successful
    """
    try:
        backend_enum = Backend(backend.lower())
    except ValueError:
        warnings.warn(f"Invalid backend: {backend}. Choose from: numpy, numba")
        return False
    return _backend_manager.set_backend(backend_enum)


def get_backend() -> str:
    """Get current backend name."""
    return _backend_manager.current_backend.value


def list_backends() -> Dict[str, bool]:
    """Get dictionary of backend availability."""
    return {
        b.value: info.available
        for b, info in _backend_manager._available_backends.items()
    }


def auto_select_backend(n_particles: int) -> str:
    """Auto-select best backend for particle count."""
    backend = _backend_manager.auto_select_backend(n_particles)
    _backend_manager.set_backend(backend)
    return backend.value


def backend_function(function_name: str):
    """Decorator to register backend-specific implementations.

    Usage:
        @backend_function("compute_density")
        @for_backend(Backend.NUMBA)
        def compute_density_numba(...):
            ...
    """
    def decorator(func):
        if hasattr(func, '_backend'):
            _backend_manager.register_implementation(function_name, func._backend, func)
        return func
    return decorator


def for_backend(backend: Backend):
    """Helper decorator to specify backend."""
    def decorator(func):
        func._backend = backend
        return func
    return decorator


def dispatch(function_name: str, *args, backend: Optional[str] = None, **kwargs):
    """Dispatch function to appropriate backend.

    Args:
        function_name: Name of the function
        *args: Positional arguments
        backend: Override backend (None for current)
        **kwargs: Keyword arguments

    Returns:
        Function result
    """
    backend_enum = Backend(backend) if backend else None
    return _backend_manager.dispatch(function_name, *args, backend=backend_enum, **kwargs)
