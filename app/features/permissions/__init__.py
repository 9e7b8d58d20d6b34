"""
Permission engine feature module.

Holds the static resource/action catalog, the authorization decision and the
route dependencies every admin-facing surface uses to gate mutations.
"""
