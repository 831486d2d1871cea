"""Artifact validators, one per generated JSON kind."""

from lp_generator.validators.base import ArtifactValidator, describe_error
from lp_generator.validators.blueprint import BlueprintValidator
from lp_generator.validators.decoration import DecorationValidator
from lp_generator.validators.design import DesignValidator
from lp_generator.validators.reference import ReferenceValidator

__all__ = [
    "ArtifactValidator",
    "BlueprintValidator",
    "DecorationValidator",
    "DesignValidator",
    "ReferenceValidator",
    "describe_error",
]
