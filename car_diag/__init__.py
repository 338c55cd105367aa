"""
Car Diag - Automotive Error Code Lookup Tool

Command-line and interactive lookup of car diagnostic error codes loaded
from a CSV database, with text and HTML report export.
"""

__version__ = "1.0.0"
__author__ = "Car Diag Development Team"
