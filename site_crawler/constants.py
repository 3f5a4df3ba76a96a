# constants.py
import logging

logger = logging.getLogger(__name__)

# Neo4j
NEO4J_URI = "bolt://localhost:7687"
NEO4J_USER = "neo4j"
NEO4J_PASSWORD = "testpassword"

# Crawl defaults
MAX_DEPTH = 3
MAX_PAGES = 100
MAX_LINKS_PER_PAGE = 50
PAGE_TIMEOUT = 30000  # ms
SETTLE_WAIT = 1000  # ms
MAX_CLICKS_PER_PAGE = 15
PARALLEL_TASKS = 1

OUTPUT_DIR = "output"
GRAPH_FILENAME = "site-graph.json"
DOT_FILENAME = "site-graph.dot"
ELEMENTS_FILENAME = "site-elements.json"

KEYWORD_MAX_LENGTH = 50
FULL_KEYWORD_MAX_LENGTH = 60
CONTEXT_HINT_DEPTH = 3

ALLOWED_SCHEMES = ('http', 'https')
DEFAULT_PORTS = {'http': 80, 'https': 443}

# Non-page file types
EXCLUDED_EXTENSIONS = (
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp', '.ico',
    '.pdf',
    '.zip', '.rar', '.tar', '.gz', '.7z',
    '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
)

DANGER_WORDS = ('logout', 'log out', 'sign out', 'delete', 'remove')

ACTION_WORDS = (
    'create', 'add', 'edit', 'update', 'delete', 'remove', 'submit',
    'save', 'cancel', 'close', 'open', 'search', 'filter', 'select',
    'upload', 'download', 'validate', 'verify', 'run', 'execute', 'apply',
)

MODAL_SELECTORS = '[role="dialog"], .modal, .popup, .dialog'
