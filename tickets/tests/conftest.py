import os
import tempfile

# The Flask app configures its database at import time.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_FOLDER"] = tempfile.mkdtemp(prefix="it-ops-uploads-")
os.environ.pop("TICKETS_FILE", None)
