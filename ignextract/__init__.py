"""
ignextract — materialize the files declared in an Ignition config onto disk.
"""

__version__ = "0.1.0"
