"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
ADMIN_LIST_LIMIT = 1000

EMPLOYEE_LEAVE_LIMIT = 50
ADMIN_LEAVE_LIMIT = 200

PROJECT_LIST_LIMIT = 50
DOCUMENT_LIST_LIMIT = 50
EMPLOYEE_PAYSLIP_LIMIT = 50
ADMIN_PAYSLIP_LIMIT = 100

STANDARD_WORKDAY_HOURS = 8
OVERTIME_MULTIPLIER = 1.5
DEFAULT_LEAVE_BALANCE = 10

TRANSACTION_MAX_ATTEMPTS = 5
SUBSCRIPTION_POLL_SECONDS = 2.0

ATTENDANCE_COLLECTION = "attendance"
EMPLOYEES_COLLECTION = "employees"
EMPLOYEE_EMAILS_COLLECTION = "employeeEmails"
LEAVES_COLLECTION = "leaveRequests"
PAYSLIPS_COLLECTION = "payslips"
PROJECTS_COLLECTION = "projects"
DOCUMENTS_COLLECTION = "employeeDocuments"
