"""
models/schema.py
----------------
Declarative descriptors for schema objects and the report produced
when the live database is compared against them.
"""

from dataclasses import dataclass, field
from enum import Enum


class StatementKind(str, Enum):
    """The kind of database object a schema statement creates."""
    EXTENSION = "extension"
    ENUM = "enum"
    TABLE = "table"
    INDEX = "index"


@dataclass(frozen=True)
class SchemaStatement:
    """
    One idempotent schema-creation step.

    Attributes:
        kind: What sort of object this statement creates.
        name: The object's name (unique across the whole schema).
        definition: Kind-specific body: enum labels, table column list,
            or ``table(columns)`` for an index. Unused for extensions.
        depends_on: Names of objects that must be created earlier.
    """
    kind: StatementKind
    name: str
    definition: str = ""
    depends_on: tuple[str, ...] = ()

    def to_sql(self) -> str:
        """Render the statement as PostgreSQL DDL."""
        if self.kind is StatementKind.EXTENSION:
            return f'CREATE EXTENSION IF NOT EXISTS "{self.name}";'
        if self.kind is StatementKind.ENUM:
            # PostgreSQL has no CREATE TYPE IF NOT EXISTS; duplicates are
            # handled by the initializer.
            return f"CREATE TYPE {self.name} AS ENUM ({self.definition});"
        if self.kind is StatementKind.TABLE:
            return f"CREATE TABLE IF NOT EXISTS {self.name} (\n{self.definition}\n);"
        if self.kind is StatementKind.INDEX:
            return f"CREATE INDEX IF NOT EXISTS {self.name} ON {self.definition};"
        raise ValueError(f"Unsupported statement kind: {self.kind!r}")

    @property
    def enum_labels(self) -> list[str]:
        """Labels declared by an ENUM statement, in order."""
        if self.kind is not StatementKind.ENUM:
            raise ValueError(f"{self} is not an enum type")
        return [label.strip().strip("'") for label in self.definition.split(",")]

    def __str__(self) -> str:
        return f"{self.kind.value} {self.name}"


@dataclass
class SchemaReport:
    """
    Result of comparing the live database against the declared schema.

    Attributes:
        present: Statements whose object already exists.
        missing: Statements whose object could not be found.
        drifted: Present enum types whose labels differ from the declared ones.
    """
    present: list[SchemaStatement] = field(default_factory=list)
    missing: list[SchemaStatement] = field(default_factory=list)
    drifted: list[SchemaStatement] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every declared object exists as declared."""
        return not self.missing and not self.drifted

    def missing_names(self, kind: StatementKind | None = None) -> list[str]:
        """Names of missing objects, optionally filtered by kind."""
        return [s.name for s in self.missing if kind is None or s.kind is kind]

    def __str__(self) -> str:
        if self.is_complete:
            return f"Schema complete ({len(self.present)} objects present)."
        problems = [f"{len(self.missing)} missing"]
        if self.missing:
            problems[0] += f" ({', '.join(str(s) for s in self.missing)})"
        if self.drifted:
            problems.append(
                f"{len(self.drifted)} with changed labels ({', '.join(str(s) for s in self.drifted)})"
            )
        return f"Schema incomplete: {'; '.join(problems)}."


@dataclass
class SchemaRunSummary:
    """Outcome of one successful initializer run."""
    applied: list[str] = field(default_factory=list)
    already_present: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"{len(self.applied)} statements applied, "
            f"{len(self.already_present)} already present"
        )
