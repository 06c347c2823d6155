from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from jobqueue.jobs.definitions import Job

# Base registry implementation
T = TypeVar("T")


class Registry(Generic[T]):
    """Generic registry for pluggable implementations."""

    def __init__(self, name: str):
        self.name = name
        self._implementations: dict[str, T] = {}
        self._frozen = False

    def _check_frozen(self, name: str) -> None:
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{name}' in {self.name.lower()} registry: "
                "registry is frozen in production mode"
            )

    def register(self, name: str, implementation: T) -> None:
        """Register an implementation with a given name."""
        self._check_frozen(name)
        self._implementations[name] = implementation

    def get(self, name: str) -> T:
        """Get an implementation by name."""
        if name not in self._implementations:
            raise KeyError(
                f"No {self.name.lower()} implementation registered with name: {name}"
            )
        return self._implementations[name]

    def list(self) -> list[str]:
        """List all registered implementation names."""
        return list(self._implementations.keys())

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if the registry is frozen."""
        return self._frozen


# Job Registry - path -> {name: Job}, consulted before importing by path
class JobRegistry(Registry[dict[str, "Job"]]):
    """Registry of job definitions, grouped by the path they were defined at."""

    def __init__(self):
        super().__init__("Job")

    def add(self, job: "Job") -> None:
        """Register a job under its path and name."""
        self._check_frozen(f"{job.path}:{job.name}")
        self._implementations.setdefault(job.path, {})[job.name] = job

    def lookup(self, path: str) -> dict[str, "Job"] | None:
        """Return the jobs registered at a path, or None if the path is unknown."""
        return self._implementations.get(path)


# Global registry instance (singleton)
job_registry = JobRegistry()
