"""
Error taxonomy for the generation and preview pipeline
"""


class SiteCraftError(Exception):
    """Base class for pipeline errors"""


class ShapeMismatch(SiteCraftError):
    """Recognized response shape with missing or malformed sub-fields"""


class RewriteAmbiguity(SiteCraftError):
    """An identifier referenced by the entry composition has no binding"""


class RenderFault(SiteCraftError):
    """A preview render stage failed"""

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class PersistenceFault(SiteCraftError):
    """Writing the materialized project to storage failed"""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path
        self.website = None


class GenerationError(SiteCraftError):
    """The generation model call failed"""
