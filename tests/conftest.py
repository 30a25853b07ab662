import os
import sys

# Make the project root importable (instant_json package and the ij CLI module)
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
