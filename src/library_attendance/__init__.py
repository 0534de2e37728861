"""Library Attendance package.

Feature modules (attendance, reports) keep the business rules in
service/repository layers; the Flask controllers on top are thin.
"""
