"""NiceGUI pages for the preview host.

Import this module to register all page routes with NiceGUI.
"""

from mdtexpreview.pages import blocks, preview

__all__ = ["blocks", "preview"]

# Touch modules to prevent linter from removing "unused" imports.
# These imports register @ui.page decorators as a side effect.
_PAGES = (blocks, preview)
