"""Application-wide constants.

Default paths, names and limits shared by the CLI, the HTTPS service and the
operator, kept here to avoid magic values scattered across modules.
"""

# Source identifiers
SOURCE_MAX_LENGTH = 20  # Maximum length of a source / feed name
SOURCE_PATTERN = r"[a-zA-Z0-9_-]+"  # Allowed characters in a source name

# Storage layout
DEFAULT_STORAGE_PATH = "storage"  # Directory holding feed snapshots
DEFAULT_DICTIONARY_PATH = "config/feeds_dictionary.json"  # Source dictionary file
DEFAULT_FEED_GROUPS_PATH = "config/feed_groups.yaml"  # Feed-group map file
SNAPSHOT_DATE_FORMAT = "%Y%m%d"  # Timestamp part of a snapshot file name

# Sentinels returned when nothing is known
NO_AVAILABLE_SOURCES = "no available sources"
NO_AVAILABLE_FEEDS = "no available feeds"

# HTTPS service
DEFAULT_PORT = 8443
DEFAULT_REFRESH_INTERVAL = "12h"  # Period of the scheduled refresh of every source
DEFAULT_CERT_FILE_PATH = "certificates/cert.pem"
DEFAULT_KEY_FILE_PATH = "certificates/key.pem"
REMOTE_FETCH_TIMEOUT_SECONDS = 10  # Timeout for downloading a remote feed

# Operator
DEFAULT_AGGREGATOR_URL = "https://news-aggregator.news-aggregator-namespace.svc.cluster.local:443"
DEFAULT_NAMESPACE = "news-aggregator-namespace"
DEFAULT_CONFIG_MAP_NAME = "hotnews-feeds-group"
DEFAULT_FINALIZER = "feeds.news-aggregator.com/finalizer"
DEFAULT_TITLES_COUNT = 10  # Titles kept in a HotNews summary
RECONCILE_TIMEOUT_SECONDS = 10  # Deadline of one reconcile
HTTP_CALL_TIMEOUT_SECONDS = 5  # Deadline of one outbound call from a reconciler
DEFAULT_MAX_RETRIES = 5  # Attempts of a reconcile before giving up on a key
DEFAULT_RETRY_MIN_WAIT = 0.5  # Minimum backoff between reconcile attempts (seconds)
DEFAULT_RETRY_MAX_WAIT = 10  # Maximum backoff between reconcile attempts (seconds)
