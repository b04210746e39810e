import json
import sys

from django.conf import settings
from django.core.management.base import BaseCommand

from core.checks import CHECKS, run_checks


class Command(BaseCommand):
    help = "Run internal health checks (DB, cache, broker) and print a summary for CI/CD pipelines."

    def add_arguments(self, parser):
        parser.add_argument("--db", action="store_true", help="Check database connectivity")
        parser.add_argument("--cache", action="store_true", help="Check cache connectivity")
        parser.add_argument("--broker", action="store_true", help="Check Celery broker connectivity")
        parser.add_argument("--json", action="store_true", help="Output as JSON (default is pretty text)")

    def handle(self, *args, **opts):
        names = [name for name in CHECKS if opts.get(name)] or list(CHECKS)
        results = run_checks(names)
        results["debug"] = bool(settings.DEBUG)

        if opts.get("json"):
            self.stdout.write(json.dumps(results, indent=2))
        else:
            self.stdout.write(f"\n=== Storefront Health Check ({results['time']}) ===\n")
            for key, val in results["checks"].items():
                mark = "OK  " if val.get("ok") else "FAIL"
                err = f" ({val.get('error')})" if not val.get("ok") and val.get("error") else ""
                self.stdout.write(f" {mark} {key.upper()}{err}\n")
            self.stdout.write(f"\nOverall: {'OK' if results['ok'] else 'FAILED'}\n")

        # Exit with code 1 on failure (for CI)
        if not results["ok"]:
            sys.exit(1)
