"""Feature subpackage - capability contract and reference features"""

from .base import BasicFeature, FEATURE_ALL, selected_rows
from .generic import GenericFeature
from .point import FeaturePoint
