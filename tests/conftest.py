import os
import tempfile

# keep per-run log files out of the working tree
os.environ.setdefault("MASTER_EDITOR_LOG_DIR", tempfile.mkdtemp(prefix="master_editor_logs_"))
