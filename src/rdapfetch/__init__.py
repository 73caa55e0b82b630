"""rdapfetch package"""

__version__ = "0.1.0"

# Re-export the client facade so 'from rdapfetch import Client' works without
# reaching into submodules.
from .client import Client as Client
from .client import new_client as new_client
