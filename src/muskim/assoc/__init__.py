"""Identity cross-references between the selected muons."""

from .resolver import IdentityResolver
