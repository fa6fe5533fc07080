__title__ = 'easy-cli'
__license__ = 'MIT'
__version__ = "0.1.0"

from .faults import *
from .specs import *
from .scanner import *
from .interpreter import *
from .validator import *
from .schema import *
from .resolver import *
from .dispatcher import *
from .completions import *
from .settings import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the specs
__all__ += specs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the scanner
__all__ += scanner.__all__  # type: ignore[attr-defined]
# Load the exposed API of the interpreter
__all__ += interpreter.__all__  # type: ignore[attr-defined]
# Load the exposed API of the validator
__all__ += validator.__all__  # type: ignore[attr-defined]
# Load the exposed API of the schema
__all__ += schema.__all__  # type: ignore[attr-defined]
# Load the exposed API of the resolver
__all__ += resolver.__all__  # type: ignore[attr-defined]
# Load the exposed API of the dispatcher
__all__ += dispatcher.__all__  # type: ignore[attr-defined]
# Load the exposed API of the completions
__all__ += completions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the settings
__all__ += settings.__all__  # type: ignore[attr-defined]
