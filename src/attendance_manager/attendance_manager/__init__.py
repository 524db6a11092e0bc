"""Attendance Manager package.

Feature modules (attendance, leaves, payroll, projects, ...) sit on top of a
transactional document store. Flask controllers are a thin layer; business
rules live in the service layer and depend only on repository protocols.
"""
