import os
import sys

# Flat layout: make models, mountmap and the packages importable from tests/
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
