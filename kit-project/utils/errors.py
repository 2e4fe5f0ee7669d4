# What it does: Defines every error the Kit core can raise
# How it does: A single hierarchy rooted at KitError; kinds that have a natural built-in counterpart also inherit from it (ValueError, FileNotFoundError) so callers can catch either
# What data structure it uses: Class hierarchy (a shallow tree of exception types)


class KitError(Exception):
    pass


class NotARepository(KitError):
    pass


class InvalidArgument(KitError, ValueError):
    pass


class PathTooLong(InvalidArgument):
    pass


class NotFound(KitError, FileNotFoundError):
    pass


class NoMatch(NotFound):
    pass


class InvalidTarget(NotFound):
    pass


class NoSuchCommit(NotFound):
    pass


class IntegrityError(KitError):
    pass


class ChecksumMismatch(IntegrityError):
    pass


class Corrupt(KitError):
    pass


class Truncated(Corrupt):
    pass


class UnknownType(Corrupt):
    pass


class UnsupportedVersion(Corrupt):
    pass


class WouldLoseChanges(KitError):
    pass


class LocalModifications(WouldLoseChanges):
    pass


class NothingToCommit(KitError):
    pass


class EmptyRepository(KitError):
    pass


class AlreadyExists(KitError):
    pass
