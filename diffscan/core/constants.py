"""
Constants
Centralised quotas, check-run strings and config file locations.
"""
# Maximum UTF-8 bytes in one scan unit
CONTENT_CHUNK_BYTE_SIZE = 1024
# Maximum items the Nightfall API accepts in one scan request
MAX_ITEMS_PER_SCAN_REQUEST = 479
# https://docs.github.com/en/rest/checks/runs#update-a-check-run (output.annotations)
MAX_ANNOTATIONS_PER_REQUEST = 50

DEFAULT_MAX_CONCURRENT_SCANS = 30
MAX_CONCURRENT_SCANS_CAP = 50

CONFIG_FILE_NAME = ".nightfalldlp/config.json"
RAW_DIFF_FILE_NAME = "nightfalldlp_raw_diff.txt"

DEFAULT_CHECK_NAME = "Nightfall DLP"
SUMMARY_TEMPLATE = "Nightfall DLP has found {count} potentially sensitive items"
IMAGE_URL = "https://www.finsmes.com/wp-content/uploads/2019/11/Nightfall-AI.png"
IMAGE_ALT = "Nightfall Logo"

CHECK_STATUS_IN_PROGRESS = "in_progress"
CHECK_STATUS_COMPLETED = "completed"
CHECK_CONCLUSION_SUCCESS = "success"
CHECK_CONCLUSION_FAILURE = "failure"
ANNOTATION_LEVEL_FAILURE = "failure"

# A push to a brand new branch reports this as the "before" commit
UNKNOWN_COMMIT_SHA = "0" * 40
