"""Errors raised by the orchestration engine."""


class PlanValidationError(Exception):
    """The plan is inconsistent and nothing has been touched yet."""


class RunRecordNotFoundError(Exception):
    """No run-record exists, so this machine was never prepared."""


class PhaseError(Exception):
    """One or more units of a concurrent phase failed.

    Every failure is kept in ``errors`` in the order it was observed. The
    first one is the summary shown to users and is also the ``__cause__``.
    """

    def __init__(self, phase: str, errors: list[Exception]) -> None:
        if not errors:
            raise ValueError("PhaseError needs at least one error")
        self.phase = phase
        self.errors = list(errors)

        message = f"{phase} failed: {errors[0]}"
        if len(errors) > 1:
            message += f" (and {len(errors) - 1} more)"
        super().__init__(message)
        self.__cause__ = errors[0]

    @property
    def first(self) -> Exception:
        return self.errors[0]
