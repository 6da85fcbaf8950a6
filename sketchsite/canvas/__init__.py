from sketchsite.canvas.exporter import CanvasExporter, PillowCanvasExporter

__all__ = ["CanvasExporter", "PillowCanvasExporter"]
