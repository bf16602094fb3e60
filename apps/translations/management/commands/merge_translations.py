"""
Merge incoming .po translations into an extension's language catalogs.

Only entries eligible for replacement are touched: empty messages, plus
messages whose msgid or msgstr ends with --ends-with when given. Comments,
ordering and every other entry are written back byte for byte.

Usage:
    python manage.py merge_translations ~/incoming/fr --extension ~/tao/taoQtiItem --language fr-FR
    python manage.py merge_translations ~/incoming/fr --destination ~/tao/taoQtiItem/locales/fr-FR
    python manage.py merge_translations ~/incoming/fr --destination DIR --ends-with _TODO
    python manage.py merge_translations ~/incoming/fr --destination DIR --dry-run
    python manage.py merge_translations --extension ~/tao/taoQtiItem --list-languages

Exit codes:
    0 = success (or nothing to merge, or cancelled at the prompt with no failed catalog)
    1 = error (bad folders, or at least one catalog failed)
"""
from django.core.management.base import BaseCommand, CommandError

from apps.translations.engine import (
    MergeConfig,
    cancel_merge,
    execute_merge,
    prepare_merge,
)
from apps.translations.errors import CatalogMergeError
from apps.translations.locator import is_language_dir, language_root, list_languages

# Long values are cut in the diff listing.
PREVIEW_WIDTH = 70


class Command(BaseCommand):
    help = "Merge translations from a folder of .po files into an extension's language catalogs."

    def add_arguments(self, parser):
        parser.add_argument(
            "source",
            nargs="?",
            help="Folder holding the incoming *.po files.",
        )
        parser.add_argument(
            "--destination",
            help="Language folder to update (e.g. <extension>/locales/fr-FR).",
        )
        parser.add_argument(
            "--extension",
            help="Extension folder; use with --language instead of --destination.",
        )
        parser.add_argument(
            "--language",
            help="Language code under <extension>/locales/.",
        )
        parser.add_argument(
            "--ends-with",
            dest="ends_with",
            default=None,
            help=(
                "Also replace messages whose msgid or msgstr ends with this "
                "text (default: TRANSLATION_MERGE['SEARCH_ENDS_WITH'])."
            ),
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show the diff without modifying files.",
        )
        parser.add_argument(
            "--noinput", "--no-input",
            action="store_false",
            dest="interactive",
            help="Merge without asking for confirmation.",
        )
        parser.add_argument(
            "--list-languages",
            action="store_true",
            help="List the language folders of --extension and exit.",
        )

    def handle(self, *args, **options):
        if options["list_languages"]:
            self._list_languages(options.get("extension"))
            return

        config = self._build_config(options)
        dry_run = options["dry_run"]

        self.stdout.write("\nTranslation Merge")
        self.stdout.write("=" * 40)
        self.stdout.write(f"  Destination: {config.destination_root}")
        self.stdout.write(f"  *.po files:  {config.source_root}")
        self.stdout.write(f"  Find {config.search_mode.describe()}")

        # ----------------------------------------------------------
        # Phase 1: Locate and diff
        # ----------------------------------------------------------
        self.stdout.write("\n[1/2] Building diff...")
        try:
            plan = prepare_merge(config)
        except CatalogMergeError as exc:
            raise CommandError(str(exc))

        self._print_locate_summary(plan.located)
        self._print_diff(plan.diff_result)
        for failure in plan.failures:
            self.stderr.write(self.style.ERROR(f"      [!!] {failure}"))

        result = plan.diff_result
        if dry_run:
            cancel_merge(plan)
            self.stdout.write(self.style.WARNING(
                "\n  --dry-run: No files modified."
            ))
            self._check_failures(plan.failures)
            return

        if result.is_empty:
            self.stdout.write(self.style.SUCCESS(
                "\n  Nothing to merge. No files modified."
            ))
            execute_merge(plan)
            self._check_failures(plan.failures)
            return

        if options["interactive"] and not self._confirm(
            "\nAre you sure you want to merge the translations? [y/N] "
        ):
            cancel_merge(plan)
            self.stdout.write(self.style.WARNING("  Merge cancelled. No files modified."))
            self._check_failures(plan.failures)
            return

        # ----------------------------------------------------------
        # Phase 2: Merge and write
        # ----------------------------------------------------------
        self.stdout.write("\n[2/2] Merging translations...")
        report = execute_merge(plan)

        if report.written:
            self.stdout.write(self.style.SUCCESS(
                f"      [OK] Added translations to {len(report.written)} file(s)"
            ))
            for path in report.written:
                self.stdout.write(f"        - {path}")
        if report.is_partial_failure:
            self.stderr.write(self.style.WARNING(
                "      [!] Some files were written, others failed. "
                "Written files were not rolled back."
            ))
        self._check_failures(report.failures)

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------

    def _build_config(self, options):
        source = options.get("source")
        if not source:
            raise CommandError("You must provide the folder holding the new *.po files.")
        if not is_language_dir(source):
            raise CommandError(f"{source} must be a valid language directory")

        destination = options.get("destination")
        extension = options.get("extension")
        language = options.get("language")
        if destination and (extension or language):
            raise CommandError("Use either --destination or --extension/--language, not both.")
        if not destination:
            if not (extension and language):
                raise CommandError(
                    "You must provide --destination, or --extension with --language."
                )
            try:
                destination = language_root(extension, language)
            except CatalogMergeError as exc:
                available = ", ".join(list_languages(extension)) or "none"
                raise CommandError(f"{exc} (available languages: {available})")

        try:
            return MergeConfig.from_options(destination, source, options.get("ends_with"))
        except (TypeError, ValueError) as exc:
            raise CommandError(f"Invalid merge settings: {exc}")

    def _list_languages(self, extension):
        if not extension:
            raise CommandError("--list-languages needs --extension.")
        languages = list_languages(extension)
        if not languages:
            raise CommandError(f"No language folders found in {extension}.")
        for language in languages:
            self.stdout.write(language)

    def _confirm(self, question):
        answer = input(question)
        return answer.strip().lower() in ("y", "yes")

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    def _print_locate_summary(self, located):
        self.stdout.write(f"      Paired catalogs: {len(located.pairs)}")
        if located.unmatched:
            self.stdout.write(self.style.WARNING(
                f"      [i] {located.unmatched_count} file(s) without a counterpart"
            ))
            for unmatched in located.unmatched:
                self.stdout.write(f"        {unmatched.side}: {unmatched.path}")
        if located.errors:
            self.stderr.write(self.style.ERROR(
                f"      [!!] {len(located.errors)} ambiguous file name(s)"
            ))

    def _print_diff(self, result):
        for file_diff in result.file_diffs:
            if not file_diff.records:
                continue
            self.stdout.write(f"\n      {file_diff.file_pair.destination}")
            for record in file_diff.records:
                self.stdout.write(f"        msgid {_preview(record.key)}")
                self.stdout.write(self.style.ERROR(f"        - {_preview(record.old_value)}"))
                self.stdout.write(self.style.SUCCESS(f"        + {_preview(record.new_value)}"))

        self.stdout.write("")
        self.stdout.write(
            f"      {result.proposed} change(s) proposed, "
            f"{result.skipped_no_source} not in source, "
            f"{result.skipped_both_empty} empty on both sides, "
            f"{result.skipped_unchanged} already up to date"
        )

    def _check_failures(self, failures):
        if failures:
            raise CommandError(
                f"{len(failures)} catalog(s) could not be merged: "
                + "; ".join(str(f) for f in failures)
            )


def _preview(value):
    text = repr(value)[1:-1]
    if len(text) > PREVIEW_WIDTH:
        return text[:PREVIEW_WIDTH - 3] + "..."
    return text
