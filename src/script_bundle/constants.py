MANIFEST_ENTRY_NAME = "META-INF/script-location.properties"

UNDEFINED_LOCATION_NAME = "<undefined>"

DEFAULT_PROPERTIES_RESOURCE = "defaults.properties"

SUPPORTED_EXTENSIONS = {".zip", ".jar"}

PROPKEY_FILE_EXTENSIONS = "scripts.fileExtensions"
PROPKEY_TARGET_DATABASE_PREFIX = "scripts.targetDatabase.prefix"
PROPKEY_QUALIFIER_PREFIX = "scripts.qualifier.prefix"
PROPKEY_PATCH_QUALIFIERS = "scripts.patch.qualifiers"
PROPKEY_POSTPROCESSING_DIR_NAME = "scripts.postProcessing.dirName"
PROPKEY_ENCODING = "scripts.encoding"
