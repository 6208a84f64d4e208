"""tagorm -- Annotation-driven record mapping for relational tables.

Manifesto:
    A dataclass already describes a row.  Adding a short ``db`` annotation
    to a few fields (``"id,pk"``, ``"fk1"``, ``"-"``) is enough to derive
    the table metadata, generate INSERT/UPDATE/DELETE/SELECT statements and
    turn result rows back into records or keyed maps of records.

Architecture::

    Layer 1 -- Vocabulary & Errors
        types.py           ColumnType, Role flags, Int8..Float64 markers
        errors.py          TagormError hierarchy with category + context
        settings.py        OrmSettings (pydantic-settings, TAGORM_*)
        logging.py         structlog configuration

    Layer 2 -- Metadata
        type_mapper.py     field annotation -> ColumnType
        tags.py            ``db`` annotation parser
        metadata.py        TableMetadata / ColumnMetadata resolution
        registry.py        per-mapper metadata cache

    Layer 3 -- Statements & Results
        statements.py      Insert / Update / Delete / Select builders
        materialize.py     ResultShape + row coercion into records

    Layer 4 -- Entry Points
        mapper.py          Mapper.insert / update / delete / select
        backend/           Session protocols, SQLite and Oracle sessions
        cli/               ``tagorm describe``

Example::

    from dataclasses import dataclass, field
    from tagorm import Mapper, ResultShape
    from tagorm.backend import SQLiteSession

    @dataclass
    class Item:
        id: int = field(default=0, metadata={"db": "id,pk"})
        name: str = ""
        owner_id: int = field(default=0, metadata={"db": "fk1"})

    mapper = Mapper()
    with SQLiteSession("items.db") as session:
        item = Item(name="widget", owner_id=7)
        mapper.insert(item, session)            # item.id now set
        by_owner = mapper.select(Item, ResultShape.MAP_OF_REFS_BY_FK1, session)
"""

__version__ = "0.1.0"

from tagorm.errors import (
    BackendError,
    ConfigError,
    DuplicateRoleError,
    EmptyTagError,
    ErrorCategory,
    ErrorContext,
    MaterializationError,
    MetadataError,
    MissingRoleError,
    NoColumnsError,
    NotARecordError,
    RegistrationError,
    ShapeError,
    TagormError,
    UnknownShapeError,
)
from tagorm.mapper import Mapper
from tagorm.materialize import ResultShape
from tagorm.metadata import ColumnMetadata, TableMetadata, build_table_metadata
from tagorm.registry import MetadataRegistry
from tagorm.settings import OrmSettings, get_settings
from tagorm.types import (
    ColumnType,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Role,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

__all__ = [
    "__version__",
    # Entry points
    "Mapper",
    "ResultShape",
    # Metadata
    "ColumnMetadata",
    "TableMetadata",
    "MetadataRegistry",
    "build_table_metadata",
    # Types
    "ColumnType",
    "Role",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
    # Settings
    "OrmSettings",
    "get_settings",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "TagormError",
    "MetadataError",
    "DuplicateRoleError",
    "EmptyTagError",
    "NotARecordError",
    "NoColumnsError",
    "MissingRoleError",
    "RegistrationError",
    "MaterializationError",
    "ShapeError",
    "UnknownShapeError",
    "BackendError",
    "ConfigError",
]
