"""HRMS attendance classification and payroll engine."""

__version__ = "0.1.0"
