# cyanla

Pieces of an HR policy question-and-answer service: a store of chat history
kept in SQLite, the user table used on the administration side, and the CSV
statistics report. Only the standard library is needed.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Chat history: `cyanla.chat_storage`

`ChatStorage` keeps messages between named users in an SQLite file. Give it a
path, or leave it out to use `default_database_path()`
(`$XDG_DATA_HOME/Cyanla/chat_history.db`, falling back to
`~/.local/share/Cyanla/chat_history.db`). Use it as a context manager, or call
`initialize()` and `close()` yourself; `is_valid()` tells whether it is open.

```python
from datetime import datetime
from cyanla.chat_storage import ChatStorage

with ChatStorage("history.db") as storage:
    storage.insert_message("alice", "bob", "Hello", datetime(2024, 1, 15, 9, 0))
    storage.insert_message("bob", "alice", "Hi!", datetime(2024, 1, 15, 9, 1))

    for message in storage.messages_between("alice", "bob"):
        print(message.timestamp, message.sender, message.message)

    print(storage.total_count())         # 2
    print(storage.export_all_json())     # JSON document holding every message
```

- Inserting: `insert_message()` and `insert()` return the stored `Message`
  with its new `id`. The timestamp defaults to now.
- Queries: `all_messages()`, `messages_between()`, `messages_in_range()`,
  `messages_by_sender()` and `messages_by_receiver()` return messages oldest
  first; `page()` and `page_between()` return the newest first (default
  `offset=0`, `limit=50`).
- Deleting: `delete_message()` raises if the id does not exist;
  `delete_between()`, `delete_in_range()` and `delete_all()` return the number
  of rows removed.
- Statistics: `total_count()`, `count_between()` and `users()` (every name
  seen as sender or receiver).
- Export: `export_json()`, `export_all_json()` and `export_to_file()` write a
  document with `export_timestamp`, `message_count` and `messages`.
  `Message.to_json()` and `Message.from_json()` convert single messages.
- Callbacks: append callables to `message_inserted` (called with the stored
  `Message`) or `message_deleted` (called with the deleted id).

Every failure, including use before `initialize()`, raises `ChatStorageError`.

## User table: `cyanla.admin`

- `sample_users()` returns the rows the user table is filled with, as
  `UserRow` objects (`id`, `name`, `role`, `status`, `last_login`).
  `UserRow.parse()` reads a row from `id|name|role|status|last_login`.
- `filter_users(rows, name, role, status)` keeps rows whose name contains the
  fragment (case-insensitively) and whose role and status match; `None` or
  `"全部"` matches everything.
- `write_users_csv(rows, stream)` writes the header
  `用户ID,姓名,角色,状态,最后登录` and the rows, and returns how many rows
  it wrote.
- `user_summary(rows, active)` returns the line
  `总用户数: N | 活跃用户: A | 禁用用户: D`; `active` defaults to the rows
  whose status is `活跃`. `SAMPLE_ACTIVE_USERS` is the figure shown for the
  sample table.

## Statistics report: `cyanla.stats`

- `check_date_range(start, end)` returns the pair, or raises
  `DateRangeError` when start is after end; the error's `suggested_start`
  is seven days before `end`.
- `stats_report(start, end, generated_at)` returns the CSV report text: a
  title, the generation time, the date range and the overview figures.

## What this package does not do

It has no user accounts or login, no live chat sessions between visitors and
staff, no AI question answering, and no command or screens to run the service
from. It offers the storage and helper functions above for a program to build
on.