"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .auth import *
from .license_key import *
from .reseller import *
from .verification import *
