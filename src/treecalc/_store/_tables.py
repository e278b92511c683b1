"""SQLAlchemy table mappings.

Table and column names match the schema the HTTP service has always used
(`variables`, `calculations.calculated_value`, `singleresource."parentId"`).
"""

from sqlalchemy import Float, ForeignKey, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class VariableRow(Base):
    __tablename__ = "variables"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)


class CalculationRow(Base):
    __tablename__ = "calculations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    expression: Mapped[str] = mapped_column(Text, nullable=False)
    calculated_value: Mapped[float | None] = mapped_column(Float, nullable=True)


class CalculationDependencyRow(Base):
    """One row per distinct variable a calculation's expression references.

    `variable_id` has no foreign key: an expression may reference a variable
    that does not exist, which is reported when the calculation is evaluated.
    """

    __tablename__ = "calculation_dependencies"

    calculation_id: Mapped[int] = mapped_column(
        ForeignKey("calculations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    variable_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)


class ResourceRow(Base):
    __tablename__ = "singleresource"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        "parentId",
        ForeignKey("singleresource.id", name="fk_parent"),
        nullable=True,
    )
