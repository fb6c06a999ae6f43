"""TL-B layout serializer generator."""

from .compiler import check_prefixes as check_prefixes
from .compiler import compile_enum as compile_enum
from .compiler import compile_schema as compile_schema
from .compiler import compile_struct as compile_struct
from .layout import FieldRef as FieldRef
from .layout import LayoutError as LayoutError
from .layout import LiteralBits as LiteralBits
from .layout import parse_layout as parse_layout
from .parser import ValidationError as ValidationError
from .parser import parse as parse
from .plan import *
from .resolver import FieldResolver as FieldResolver
from .sizes import SchemaSizeInfo as SchemaSizeInfo
from .sizes import SizeCalculator as SizeCalculator
from .sizes import SizeInfo as SizeInfo
from .sizes import SizeKind as SizeKind
from .sizes import TypeSizeInfo as TypeSizeInfo
from .sizes import calculate_sizes as calculate_sizes
from .types import *
