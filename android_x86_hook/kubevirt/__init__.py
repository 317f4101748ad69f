# android_x86_hook/kubevirt/__init__.py
from .vmi import VmiAnnotations, annotations_from_vmi, read_vmi

__all__ = ["VmiAnnotations", "annotations_from_vmi", "read_vmi"]
