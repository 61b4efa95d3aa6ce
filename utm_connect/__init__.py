"""UTM Connect - social and campaign-link tracking backend."""

__version__ = "1.0.0"
__license__ = "MIT"
