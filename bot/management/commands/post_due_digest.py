"""Management command to post the due-date digest for a Redmine project to Slack.

Run via system cron every weekday morning:
    0 9 * * 1-5 cd /srv/duebot && /srv/duebot/venv/bin/python3 manage.py post_due_digest
"""

import logging

import httpx
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError
from slack_sdk.errors import SlackApiError

from bot.digest import DigestConfig, run_digest
from integrations.redmine import RedmineError

logger = logging.getLogger("bot.management.post_due_digest")


class Command(BaseCommand):
    help = "Post expired and soon-due Redmine tickets of one project to a Slack channel."

    def add_arguments(self, parser):
        parser.add_argument("-k", "--redmine-apikey", dest="redmine_api_key", help="API key for your Redmine")
        parser.add_argument("-r", "--redmine-endpoint", dest="redmine_endpoint", help="Endpoint URL of your Redmine")
        parser.add_argument("-p", "--redmine-project", dest="redmine_project", help="Target project of Redmine")
        parser.add_argument(
            "-f", "--redmine-finished-status",
            dest="finished_statuses",
            type=int,
            action="append",
            help="ID of a status considered as finished (repeatable)",
        )
        parser.add_argument("-t", "--slack-token", dest="slack_token", help="Slack API token")
        parser.add_argument("-c", "--slack-channel", dest="slack_channel", help="Slack channel you want to post to")
        parser.add_argument(
            "--dry-run",
            action="store_true",
            default=None,
            help="Print the digest instead of posting it",
        )

    def handle(self, *args, **options):
        overrides = {
            key: options.get(key)
            for key in (
                "redmine_api_key",
                "redmine_endpoint",
                "redmine_project",
                "finished_statuses",
                "slack_token",
                "slack_channel",
                "dry_run",
            )
        }
        config = DigestConfig.from_settings(settings, **overrides)

        try:
            text = run_digest(config)
        except ImproperlyConfigured as exc:
            raise CommandError(str(exc)) from exc
        except (RedmineError, httpx.HTTPError, SlackApiError) as exc:
            logger.exception("Digest run for %s failed", config.redmine_project)
            raise CommandError(f"Digest run failed: {exc}") from exc

        if config.dry_run:
            self.stdout.write(text)
        else:
            self.stdout.write(self.style.SUCCESS(f"Posted digest to {config.slack_channel}"))
