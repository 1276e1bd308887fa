"""Small, side-effect free helpers shared by the directory and service layers.

Keep this package dependency-light (no ldap3 / FastAPI imports).
"""

from .deadline import Deadline  # noqa: F401
from .dn import dn_first_component_value, looks_like_dn  # noqa: F401
