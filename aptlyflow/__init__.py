"""aptlyflow: safe lifecycle orchestration on top of aptly."""

__version__ = "0.1.0"
