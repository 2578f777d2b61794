"""REST API for the HRMS engine."""
