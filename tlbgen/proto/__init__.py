"""Runtime support for generated TL-B serializers."""

from .serialization import CellSerialize as CellSerialize
from .serialization import SerializationError as SerializationError
from .serialization import Struct as Struct
from .serialization import SumType as SumType
from .serialization import literal as literal
from .serialization import serialize_bool as serialize_bool
from .serialization import serialize_uint as serialize_uint
from .serialization import serialize_varuint16 as serialize_varuint16
from .serialization import tlb_field as tlb_field
