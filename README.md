# casedesk

A case desk for an investigations unit. It keeps cases and the people
involved in them, text and image evidence, citizen crime reports, user
accounts with roles and clearance levels, and an audit log of evidence
deletions. It can also print a PDF report for each case.

Records are kept in SQLite. Uploaded images are kept in an object store.

## What it does

- **Cases** (`casedesk.case_repo`)
  - Create a case. Case numbers look like `C0001`.
  - Update a case's fields or its status.
  - Add victims, suspects and witnesses.
  - Assign users to a case. An officer can be assigned only to a case whose
    level does not exceed the officer's clearance.
  - Descriptions longer than 100 characters are cut at a word boundary and
    end in `" ..."` (`truncate_description`).
  - `get_case_details` returns a case with counts of its linked reports,
    assignees, live evidence, suspects, victims and witnesses.
    `get_full_case_details` also lists the assignees, the evidence and the
    people.
- **Evidence** (`casedesk.evidence_repo`, `casedesk.deletion`)
  - Text evidence is stored in the database.
  - Image evidence is stored in the object-store bucket `evidence-bucket`,
    under a fresh name of the form `evidence/<uuid><ext>`.
  - Soft deletion hides the evidence and writes an audit entry.
  - Hard deletion removes the database row, and for images the stored
    object. It also writes an audit entry.
  - `fetch_audit_logs` lists the audit entries, newest first.
- **Text analysis**
  - `top_words` / `top_text_evidence_words` give the ten most frequent
    words across text evidence. Case is ignored and common English stop
    words are left out.
  - `find_urls` / `extract_urls_from_case` give every `http://` or
    `https://` link found in text evidence.
- **Crime reports** (`casedesk.report_repo`)
  - Anyone can submit a report.
  - A report can be linked to a case.
  - `get_report_status` returns `pending` until the report is linked to a
    case, then the status of that case.
- **Users** (`casedesk.user_repo`)
  - Each user has a bcrypt-hashed password and a role: `admin`,
    `investigator`, `officer` or `auditor`.
  - Each user has a clearance level: `low`, `medium`, `high` or `critical`.
  - New ids are the role's letter followed by a three-digit number, for
    example `A002`, `I001`, `O001` or `U001`.
  - The user `A001` cannot be changed or deleted.
  - Deleting a user only marks the user as deleted.
- **Tokens** (`casedesk.auth`)
  - `generate_jwt` signs an HS256 token valid for 30 minutes.
  - The token carries `user_id`, `role` and `clearance_level`.
- **Case reports** (`casedesk.case_report`)
  - `generate_case_pdf` builds a PDF with the case details, assignees,
    people involved, linked citizen reports and text evidence.
  - It also includes image evidence, with the images converted to JPEG and
    embedded. Images that cannot be read are listed without a picture.
  - The PDF is written by the small `casedesk.pdf.PdfWriter`.

## Access rules

Administrators and investigators may view any case. Everyone else needs a
clearance at least as high as the case level:

```python
from casedesk.clearance import ClearanceError, check_clearance, is_clearance_sufficient
from casedesk.models import CaseLevel

is_clearance_sufficient(CaseLevel("high"), CaseLevel("medium"))   # True
is_clearance_sufficient(CaseLevel("low"), CaseLevel("critical"))  # False

check_clearance("investigator", "low", CaseLevel("critical"))     # allowed

try:
    check_clearance("officer", "low", CaseLevel("high"))
except ClearanceError as exc:
    print(exc)  # insufficient clearance level for this case
```

## Storage

`casedesk.database.open_database(path)` opens a SQLite database, turns on
foreign keys and creates the schema. The default path is `":memory:"`.

The repository modules take that connection as their first argument:
`case_repo`, `report_repo`, `user_repo`, `evidence_repo` and `deletion`.
Lookups that find nothing raise `NotFoundError`. Other storage failures
raise `RepositoryError`. Invalid input, such as an update with no fields
set, raises `ValueError`.

```python
from casedesk.database import open_database
from casedesk.models import ClearanceLevel, UserCreate, UserRole
from casedesk.user_repo import create_user

db = open_database("casedesk.db")
password = "password"
user_id = create_user(
    db,
    UserCreate(
        name="Dana",
        password=password,
        role=UserRole.OFFICER,
        clearance_level=ClearanceLevel.MEDIUM,
    ),
)
# "O001" on an empty database
```

Images go to an `ObjectStore`. `DirectoryObjectStore(root)` keeps each
bucket as a directory under `root`. `ensure_bucket(store, bucket)` creates a
bucket when it is missing and returns whether it did.

```python
from casedesk.storage import DirectoryObjectStore, ensure_bucket

store = DirectoryObjectStore("/var/lib/casedesk/objects")
ensure_bucket(store, "evidence-bucket")
```

## Evidence helpers

```python
from casedesk.case_repo import truncate_description
from casedesk.evidence_repo import find_urls, top_words

find_urls("see https://example.com/a and http://example.com/b")
# ['https://example.com/a', 'http://example.com/b']

top_words(["The van was parked near the bank", "A van left the bank"])
# the most frequent words first, at most ten

truncate_description("word " * 40)
# at most 100 characters, ending in " ..."
```

## Hard deletion in three steps

`hard_delete_evidence_handler` takes three requests for the same evidence:

1. A `POST` starts the deletion.
2. A `PATCH` with `{"confirm": "yes"}` arms it.
3. A `DELETE` carries it out. It is refused unless the evidence was
   confirmed first.

Progress is kept in `casedesk.state.DeletionTracker`. Its entries expire
after a time-to-live, 300 seconds by default.

`long_poll_delete_status` waits for the deletion to finish, for up to 30
seconds by default, checking once a second. It stops when the status
becomes `done` or `failed`.

## Configuration

- `get_jwt_secret` reads the token signing secret from `JWT_SECRET`. When
  that is unset it uses a built-in default.
- `build_dsn` builds a `postgres://` connection string from `DB_USER`,
  `DB_PASSWORD`, `DB_HOST`, `DB_PORT` and `DB_NAME`.
- `connect_with_retry(connect, dsn)` calls any connect function until it
  succeeds. It makes 10 attempts, 2 seconds apart.
- `upload_image` builds image links from `MINIO_ENDPOINT`, unless an
  endpoint is passed in.

## Handlers

The request handlers live in four modules:

- `casedesk.web`: login, logout and the audit log
- `casedesk.case_handlers`
- `casedesk.evidence_handlers`
- `casedesk.admin_handlers`: reports and users

Each handler takes a `Services` bundle and a `Request`:

- `Services` holds the database, the object store, the deletion tracker and
  optional settings.
- In a `Request`, `params` holds the path parameters, `body` the JSON body,
  and `form` and `files` the multipart form fields.
- `locals` holds what is known about the caller: `user_id`, `role` and
  `clearance`.

Each handler returns a `Response` with an HTTP status, a body and headers.
The body is JSON-ready data, or raw bytes for PDFs and images.

```python
from casedesk.storage import DirectoryObjectStore
from casedesk.web import Request, Services, login_handler

services = Services(db=db, store=DirectoryObjectStore("objects"))
response = login_handler(services, Request(body={"user_id": user_id, "password": password}))
response.status  # 200
response.body    # {"token": ..., "userID": "O001", "role": "officer"}
```

## What it does not do

- There is no web server, no URL routing and no command to start one. The
  handlers have to be mounted under a web framework of your choice.
- Incoming tokens are not verified, and there is no role check per
  endpoint. The layer that mounts the handlers must check the caller and
  fill in `Request.locals`.
- `open_database` does not create any user, including the default `A001`.
  The first accounts have to be added to the database by other means.
- Only SQLite is supported as a database. `build_dsn` only formats a
  connection string.
- Only a directory-backed object store is included.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.