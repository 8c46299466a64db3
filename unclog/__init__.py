'''
unclog assembles release changelogs from per-commit changelog fragments.

Each change adds a small markdown file (a "fragment") to the `changelog` directory, listing its
changelog entries grouped into sections (`### Added`, `### Fixed`, ..). Upon release, all
fragments added between the previous release and the new release tag are collected (ignoring
fragments deleted again in the meantime), merged by section and prepended to the existing
changelog.

See `unclog.release.release` for the release pipeline, and `unclog.check` for the checks intended
to be run for pull requests.
'''
