"""Exception types raised by the reconciliation and upload flows.

Every fatal condition is a subclass of :class:`MigrationError`. Library code
raises; only the CLI entry point turns these into an exit status.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class MigrationError(Exception):
    """Base class for conditions that must stop a migration run."""


class MappingNotFoundError(MigrationError, KeyError):
    """A source account has no entry in the account mapping."""

    def __init__(self, account_name: str) -> None:
        super().__init__(account_name)
        self.account_name = account_name

    def __str__(self) -> str:
        return (
            f"No account mapping found for Mint account {self.account_name!r}; "
            "regenerate the account mapping (account-mapping) and try again"
        )


class UnmappedCategoriesError(MigrationError):
    """Source categories exist in neither the remote catalog nor the mapping."""

    def __init__(self, categories: Sequence[str], suggestions: Mapping[str, str] | None = None) -> None:
        self.categories = list(categories)
        self.suggestions = dict(suggestions or {})
        super().__init__(str(self))

    def __str__(self) -> str:
        lines = [f"{len(self.categories)} categories left to map:"]
        for name in self.categories:
            hint = self.suggestions.get(name)
            lines.append(f"  {name} (suggested: {hint})" if hint else f"  {name}")
        lines.append("Extend the category mapping or regenerate it with --overwrite.")
        return "\n".join(lines)


class CategoryGroupConflictError(MigrationError):
    """Destination category names collide with category group names."""

    def __init__(self, conflicts: Sequence[str]) -> None:
        self.conflicts = list(conflicts)
        super().__init__(
            "Group names must be different from category names: " + ", ".join(self.conflicts)
        )


class InvalidDateError(MigrationError, ValueError):
    """A source date does not match ``MM/dd/yyyy``."""

    def __init__(self, value: str, *, index: int | None = None) -> None:
        self.value = value
        self.index = index
        where = f" (record {index})" if index is not None else ""
        super().__init__(f"invalid MM/DD/YYYY date{where}: {value!r}")


class InvalidRecordError(MigrationError, ValueError):
    """A CSV row cannot be turned into a transaction record."""


class MappingExistsError(MigrationError):
    """Generation would overwrite a mapping document the user may have edited."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"A category mapping already exists at {path}; "
            "edit it directly or pass --overwrite to regenerate it"
        )


class MissingMappingError(MigrationError):
    """A mapping document required for the full run is absent."""


class MappingFileError(MigrationError):
    """A mapping document exists but cannot be parsed."""


class MissingAccountsError(MigrationError):
    """Accounts referenced by transactions do not exist in Lunch Money."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Accounts missing in Lunch Money (create them first, e.g. with create-account): "
            + ", ".join(self.missing)
        )


class LunchMoneyAPIError(MigrationError):
    """The Lunch Money API rejected a request or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class UploadError(MigrationError):
    """A transaction batch was rejected; earlier batches remain uploaded."""

    def __init__(self, batch_index: int, errors: Sequence[str]) -> None:
        self.batch_index = batch_index
        self.errors = list(errors)
        super().__init__(
            f"Batch {batch_index} was rejected by Lunch Money: " + "; ".join(self.errors)
        )


class MigrationAborted(MigrationError):
    """The operator declined a confirmation prompt."""


__all__ = [
    "MigrationError",
    "MappingNotFoundError",
    "UnmappedCategoriesError",
    "CategoryGroupConflictError",
    "InvalidDateError",
    "InvalidRecordError",
    "MappingExistsError",
    "MissingMappingError",
    "MappingFileError",
    "MissingAccountsError",
    "LunchMoneyAPIError",
    "UploadError",
    "MigrationAborted",
]
