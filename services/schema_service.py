"""
services/schema_service.py
---------------------------
Schema lifecycle operations used by the application bootstrap:
applying the declared schema and checking a live database against it.
"""

from db.init_db import initialize
from db.schema_statements import SCHEMA_STATEMENTS
from models.schema import SchemaReport, SchemaRunSummary, StatementKind
from repositories.schema_repo import SchemaRepository
from utils.logger import get_logger

logger = get_logger(__name__)


class SchemaService:
    """
    Owns the declared schema for one connection provider.

    Responsibilities:
        - Converge the database onto the declared schema.
        - Report which declared objects are missing or have drifted.
    """

    def __init__(self, provider, statements=SCHEMA_STATEMENTS):
        self.provider = provider
        self.statements = tuple(statements)
        self.repo = SchemaRepository(provider)

    def initialize(self) -> SchemaRunSummary:
        """Apply the declared schema. See db.init_db.initialize."""
        return initialize(self.provider, self.statements)

    def verify(self) -> SchemaReport:
        """
        Compare the database with the declared schema without changing it.

        Returns:
            SchemaReport listing present, missing and drifted statements,
            in declared order.
        """
        existing = self.repo.get_existing_by_kind()
        report = SchemaReport()
        for statement in self.statements:
            if statement.name not in existing[statement.kind]:
                report.missing.append(statement)
                continue
            report.present.append(statement)
            # The initializer never changes the labels of an existing type
            if statement.kind is StatementKind.ENUM:
                labels = self.repo.get_enum_labels(statement.name)
                if labels != statement.enum_labels:
                    logger.warning(
                        f"{statement} has labels {labels}, expected {statement.enum_labels}"
                    )
                    report.drifted.append(statement)

        if report.is_complete:
            logger.info(str(report))
        else:
            logger.warning(str(report))
        return report
