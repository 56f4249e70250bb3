# status values shared by folders and files
PENDING = "PENDING"
SCANNING = "SCANNING"
PROCESSING = "PROCESSING"  # folders: reserved, never written by the scan flow
COMPLETED = "COMPLETED"
FAILED = "FAILED"

FOLDER_STATUSES = (PENDING, SCANNING, PROCESSING, COMPLETED, FAILED)
FILE_STATUSES = (PENDING, PROCESSING, COMPLETED, FAILED)
