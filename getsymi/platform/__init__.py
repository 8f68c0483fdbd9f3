"""Platform abstraction layer."""

from .detection import (
    Arch,
    Os,
    PlatformInfo,
    probe,
)
from .paths import home
from .process import (
    CommandRunner,
    DefaultCommandRunner,
    run_checked,
)

__all__ = [
    # detection
    "Arch",
    "Os",
    "PlatformInfo",
    "probe",
    # paths
    "home",
    # process
    "CommandRunner",
    "DefaultCommandRunner",
    "run_checked",
]
