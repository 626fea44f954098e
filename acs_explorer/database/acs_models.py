"""
ACS Catalog Database Models

Tables rebuilt wholesale by every catalog refresh:
  - acs_tables:    one row per table code with its label
  - acs_vars:      one row per (variable, estimate, year) as seen in the API
  - acs_est_years: which years each table was published for each estimate

Enum columns hold the short text tags ("B"/"C", "E"/"M", "1yr"/"5yr").

Author: ACS Explorer
Created: 2026-10-19
"""
from sqlalchemy import (
    Column, Integer, String, Text, SmallInteger, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ACSTable(Base):
    """ACS table catalog - one row per table code"""
    __tablename__ = 'acs_tables'

    id = Column(Integer, primary_key=True)
    prefix = Column(String(1), nullable=False)  # 'B', 'C'
    table_id = Column(String(10), nullable=False)  # '20005'
    suffix = Column(String(10))  # 'A'..'I', NULL when absent
    label = Column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint('prefix', 'table_id', 'suffix', name='uq_acs_tables_code'),
        Index('ix_acs_tables_table_id', 'table_id'),
    )

    def __repr__(self):
        return f"<ACSTable(code='{self.prefix}{self.table_id}{self.suffix or ''}')>"


class ACSVariable(Base):
    """ACS variables - denormalized fact table, one row per variable/estimate/year"""
    __tablename__ = 'acs_vars'

    id = Column(Integer, primary_key=True)
    prefix = Column(String(1), nullable=False)
    table_id = Column(String(10), nullable=False)
    suffix = Column(String(10))
    column_id = Column(String(10), nullable=False)  # '001'
    var_type = Column(String(1), nullable=False)  # 'E', 'M'
    estimate = Column(String(3), nullable=False)  # '1yr', '5yr'
    year = Column(SmallInteger, nullable=False)
    label = Column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            'prefix', 'table_id', 'suffix', 'column_id', 'var_type', 'estimate', 'year',
            name='uq_acs_vars_code_estimate_year',
        ),
        Index('ix_acs_vars_table', 'table_id', 'prefix', 'suffix'),
    )

    def __repr__(self):
        return (
            f"<ACSVariable(code='{self.prefix}{self.table_id}{self.suffix or ''}_"
            f"{self.column_id}{self.var_type}', estimate='{self.estimate}', year={self.year})>"
        )


class ACSEstimateYear(Base):
    """Years each table was published for each estimate"""
    __tablename__ = 'acs_est_years'

    id = Column(Integer, primary_key=True)
    prefix = Column(String(1), nullable=False)
    table_id = Column(String(10), nullable=False)
    suffix = Column(String(10))
    estimate = Column(String(3), nullable=False)
    year = Column(SmallInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint('prefix', 'table_id', 'suffix', 'estimate', 'year', name='uq_acs_est_years'),
        Index('ix_acs_est_years_table', 'table_id', 'prefix', 'suffix'),
    )

    def __repr__(self):
        return f"<ACSEstimateYear(code='{self.prefix}{self.table_id}{self.suffix or ''}', {self.estimate} {self.year})>"
