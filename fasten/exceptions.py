class FastenError(Exception):
    """Base for all Fasten exceptions."""

    pass


# High-level families
class UsageError(FastenError):
    """Bad or missing command-line input."""

    pass


class ConfigurationError(UsageError):
    """Configuration file could not be loaded or validated."""

    pass


class SourceError(FastenError):
    """Source tree discovery failures."""

    pass


class CommandError(FastenError):
    """External command failures."""

    def __init__(self, message: str, *, command: str, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class EvolutionError(FastenError):
    """Evolution process failures."""

    pass


# Source subtypes
class DirectoryNotFoundError(SourceError):
    """A configured search root does not exist."""

    def __init__(self, directory: str):
        super().__init__(f"Directory not found: {directory}")
        self.directory = directory


class InvalidFastenerError(SourceError):
    """An annotated literal cannot be represented by its kind."""

    def __init__(self, path: str, line: int, reason: str):
        super().__init__(f"{path}:{line}: invalid FASTENABLE literal: {reason}")
        self.path = path
        self.line = line


class NoFastenersError(SourceError):
    """No annotated constants were found under the search roots."""

    pass


# Command subtypes
class CommandLaunchError(CommandError):
    """The operating system could not start the executable."""

    pass


class CommandTimeoutError(CommandError):
    """The command exceeded its allotted time and was killed."""

    pass


class NonZeroExitError(CommandError):
    """The command ran but exited with a non-zero status."""

    def __init__(self, message: str, *, command: str, returncode: int, stderr: str = ""):
        super().__init__(message, command=command, stderr=stderr)
        self.returncode = returncode


class ResetFailedError(CommandError):
    """The reset command ran but did not restore the tree."""

    pass


class UnparseableFitnessError(FastenError):
    """Fitness command output is not a usable number."""

    def __init__(self, output: str, reason: str = "not a number"):
        super().__init__(f"Invalid fitness output ({reason}): {output!r}")
        self.output = output
        self.reason = reason


class RunInterruptedError(FastenError):
    """The run was cancelled by a signal."""

    pass


# Evolution subtypes
class EmptyGenerationError(EvolutionError):
    """Every individual of a generation failed to produce a fitness."""

    pass
