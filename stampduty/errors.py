"""Error taxonomy for duty and purchasing-power queries.

All errors subclass ``ValueError`` so callers that only care about bad
input can catch that. None of them are transient: the same input and
rule tables always fail the same way.
"""


class DutyError(ValueError):
    """Base class for every failure raised by the engine or the solver."""


class InvalidInput(DutyError):
    """Caller supplied a malformed argument (non-numeric price, bad flag, ...)."""


class UnsupportedJurisdiction(InvalidInput):
    """No rule table exists for the requested jurisdiction code."""


class RuleSetNotReady(DutyError):
    """A rule table exists but is still marked as draft."""


class ScheduleError(DutyError):
    """A rule table is internally inconsistent (empty, gapped, bad inheritance)."""
