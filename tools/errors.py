"""Error types raised by the build helpers.

Every error carries the exit status the build should terminate with.
Helpers raise; only the lifecycle session turns an error into a message
and a process exit.
"""


class BuildError(Exception):
    """Fatal pipeline error.  Exits with status 1 unless overridden."""

    exit_code = 1


class WorkspaceConflict(BuildError):
    """A build or source directory left over from an earlier run."""

    def __init__(self, path):
        super().__init__(f"directory already exists - please remove and try again: {path}")
        self.path = path


class DirectoryCreationError(BuildError):
    def __init__(self, path, reason):
        super().__init__(f"failed to create directory {path}: {reason}")
        self.path = path


class MissingArchive(BuildError):
    def __init__(self, path):
        super().__init__(f"tarfile not found: {path}")
        self.path = path


class UnsupportedArchiveFormat(BuildError):
    def __init__(self, path):
        super().__init__(f"don't know how to unzip {path}")
        self.path = path


class ExternalToolFailure(BuildError):
    """An invoked tool exited non-zero; its status is propagated unchanged."""

    def __init__(self, cmd, returncode):
        name = cmd[0] if cmd else "command"
        super().__init__(f"{name} failed with exit code {returncode}")
        self.cmd = list(cmd)
        self.exit_code = returncode


class SignalInterruption(BuildError):
    """Raised from a signal handler; exit code is 128 + signal number."""

    def __init__(self, signum, exit_code, message):
        super().__init__(message)
        self.signum = signum
        self.exit_code = exit_code
