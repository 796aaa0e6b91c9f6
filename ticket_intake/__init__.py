"""
Ticket Intake.

This package imports customer-support tickets from CSV, JSON and XML files,
validates every record independently, classifies each ticket by keywords
and reports an itemized outcome for the whole batch.
"""

__version__ = "1.0.0"
