"""FacilityHub booking core: conflict detection, inventory reservation and booking lifecycle."""

__version__ = "0.1.0"
