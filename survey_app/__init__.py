"""
Survey app client package.

The Android build uses the repository root as the Buildozer source dir
(`source.dir = .`), so `survey_app` is a top-level package both on device and
in desktop/dev runs.
"""
