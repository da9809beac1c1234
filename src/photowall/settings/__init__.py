from .manager import PipelineSettings, load_settings

__all__ = ["PipelineSettings", "load_settings"]
