"""Exception hierarchy for psaux."""


class PsauxError(Exception):
    """Base for all psaux errors."""


class AcquisitionError(PsauxError):
    """A process-listing command failed or wrote to its error stream.

    ``detail`` holds the raw stderr text (or the OS error message) and
    ``command`` the argument list that was run, if any.
    """

    def __init__(self, detail: str, command: list[str] | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.command = command

    def __str__(self) -> str:
        if self.command:
            return f"{' '.join(self.command)}: {self.detail}"
        return self.detail
