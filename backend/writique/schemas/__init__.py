"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .post import *
from .user import *
from .webhook import *
