from .figures import canvas_figure, scene_figure
from .state import DATASET_SCHEMA, DatasetState

__all__ = ["DATASET_SCHEMA", "DatasetState", "canvas_figure", "scene_figure"]
