"""
Clinic Records: clinical-record reconciliation engine

Keeps appointments, therapy sessions and treatment plans consistent with each
other and derives patient evolution series from goal and improvement logs.
"""

__version__ = "0.1.0"
__author__ = "Clinic Records Team"
__description__ = "Clinical-record reconciliation engine"
