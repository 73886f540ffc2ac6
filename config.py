#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Shared configuration and startup logic for the extension server."""

import contextlib
import datetime
import json
import logging
import os
from typing import Callable
from absl import flags
import db
from fastapi import FastAPI
from services import session_state
from services.notification import LogOnlyNotificationSink
from services.notification import NotificationSink
from services.notification import SmtpNotificationSink
from services.notification import WebhookNotificationSink
from services.property_lookup import get_storefront_name
from services.property_lookup import SqlPropertyLookup
from services.property_lookup import UNKNOWN_STOREFRONT

FLAGS = flags.FLAGS

LOG_FILE_PREFIX = "Exclude_Handling_Extension_Log_File_"

_SERVER_VERSION_CACHE = None
_NOTIFICATION_SINK: NotificationSink | None = None


def get_server_version() -> str:
  """Reads and caches the extension version from the extension profile."""
  global _SERVER_VERSION_CACHE
  if _SERVER_VERSION_CACHE:
    return _SERVER_VERSION_CACHE

  current_dir = os.path.dirname(os.path.abspath(__file__))
  profile_path = os.path.join(current_dir, "routes", "extension_profile.json")

  with open(profile_path, "r") as f:
    data = json.load(f)
    _SERVER_VERSION_CACHE = data["version"]
    return _SERVER_VERSION_CACHE


# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string("db_path", None, "Path to the store DB")
  flags.DEFINE_integer("port", None, "Port to run the server on")
  flags.DEFINE_string(
      "log_dir", None, "Directory for daily extension log files (optional)"
  )
  flags.DEFINE_string(
      "default_currency",
      "USD",
      "ISO currency code used when the store cannot provide one",
  )
  flags.DEFINE_integer(
      "max_sessions",
      session_state.DEFAULT_MAX_SESSIONS,
      "Maximum number of checkout passes kept in memory",
  )
  flags.DEFINE_string("smtp_host", None, "SMTP relay for incident emails")
  flags.DEFINE_integer("smtp_port", 25, "SMTP relay port")
  flags.DEFINE_string(
      "alert_sender", "no-reply@localhost", "From address of incident emails"
  )
  flags.DEFINE_list(
      "alert_recipients", [], "Comma separated incident email recipients"
  )
  flags.DEFINE_string(
      "incident_webhook_url", None, "Webhook receiving incidents as JSON"
  )
except flags.DuplicateFlagError:
  pass


def flag_value(name: str, default=None):
  """Returns a flag's value, or `default` while flags are still unparsed."""
  if not FLAGS.is_parsed():
    return default
  return getattr(FLAGS, name)


def build_notification_sink() -> NotificationSink:
  """Builds the incident sink from flags; webhook wins over SMTP."""
  webhook_url = flag_value("incident_webhook_url")
  if webhook_url:
    return WebhookNotificationSink(webhook_url)
  smtp_host = flag_value("smtp_host")
  if smtp_host:
    return SmtpNotificationSink(
        host=smtp_host,
        port=flag_value("smtp_port", 25),
        sender=flag_value("alert_sender", "no-reply@localhost"),
        recipients=flag_value("alert_recipients", []),
    )
  return LogOnlyNotificationSink()


def get_notification_sink() -> NotificationSink:
  global _NOTIFICATION_SINK
  if _NOTIFICATION_SINK is None:
    _NOTIFICATION_SINK = build_notification_sink()
  return _NOTIFICATION_SINK


def _local_now() -> datetime.datetime:
  return datetime.datetime.now()


class DailyLogFileHandler(logging.FileHandler):
  """Appends to one log file per day, named after the day it covers.

  Lines go to `Exclude_Handling_Extension_Log_File_<MMDDYYYY>.txt` in
  `directory`; the first record after local midnight switches to the next
  day's file.
  """

  def __init__(
      self,
      directory: str,
      clock: Callable[[], datetime.datetime] = _local_now,
  ):
    self.directory = directory
    self.clock = clock
    self.current_day = clock().date()
    super().__init__(self.path_for(self.current_day), delay=True)

  def path_for(self, day: datetime.date) -> str:
    return os.path.abspath(
        os.path.join(self.directory, f"{LOG_FILE_PREFIX}{day:%m%d%Y}.txt")
    )

  def emit(self, record: logging.LogRecord) -> None:
    today = self.clock().date()
    if today != self.current_day:
      if self.stream is not None:
        self.stream.close()
        self.stream = None
      self.current_day = today
      self.baseFilename = self.path_for(today)
    super().emit(record)


def configure_file_logging(
    log_dir: str,
    storefront_name: str,
    clock: Callable[[], datetime.datetime] = _local_now,
) -> logging.Handler:
  """Adds a daily log file under `<log_dir>/<storefront_name>/`."""
  storefront_dir = os.path.join(log_dir, storefront_name)
  os.makedirs(storefront_dir, exist_ok=True)
  handler = DailyLogFileHandler(storefront_dir, clock=clock)
  handler.setFormatter(
      logging.Formatter("Time: %(asctime)s:  Message: %(message)s", "%H:%M:%S")
  )
  logging.getLogger().addHandler(handler)
  return handler


async def resolve_storefront_name() -> str:
  """Reads the storefront name the incident reports also use."""
  if db.manager.session_factory is None:
    return UNKNOWN_STOREFRONT
  async with db.manager.session_factory() as session:
    return await get_storefront_name(SqlPropertyLookup(session))


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Shared lifespan manager for the store database and incident sink."""
  del app  # Unused.
  # In tests or if flags aren't set, these might be None, handled by caller
  db_path = flag_value("db_path")
  if db_path:
    await db.manager.init_db(db_path)
  session_state.registry.max_sessions = flag_value(
      "max_sessions", session_state.DEFAULT_MAX_SESSIONS
  )
  log_dir = flag_value("log_dir")
  if log_dir:
    configure_file_logging(log_dir, await resolve_storefront_name())
  get_notification_sink()
  yield
  await db.manager.close()
