"""Built-in default options for a user-script manager.

Only keys listed here can be set; anything else is treated as unknown.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from pyoptions.models import MigrationRule

#: Stored under ``version`` on first run.
VERSION_KEY = "version"

SCRIPT_TEMPLATE_KEY = "scriptTemplate"

SCRIPT_TEMPLATE = """\
// ==UserScript==
// @name        New script {{name}}
// @namespace   Userscripts
// @match       {{url}}
// @grant       none
// @version     1.0
// @author      -
// @description {{date}}
// ==/UserScript==
"""

#: Template shipped by releases before the ``@version``/``@author`` lines
#: were added.  Profiles that never edited it get the current one.
LEGACY_SCRIPT_TEMPLATE = """\
// ==UserScript==
// @name New Script
// @namespace Userscripts
// @match {{url}}
// @grant none
// ==/UserScript==
"""

_DEFAULTS: dict[str, Any] = {
    VERSION_KEY: 0,
    "isApplied": True,
    "autoUpdate": 1,
    "lastUpdate": 0,
    "lastModified": 0,
    "showBadge": "unique",
    "badgeColor": "#880088",
    "badgeColorBlocked": "#888888",
    "exportValues": True,
    "exportNameTemplate": "[userscripts]_YYYY-MM-DD_HH.mm.ss",
    "expose": {
        "greasyfork.org": True,
        "sleazyfork.org": False,
    },
    "closeAfterInstall": False,
    "editAfterInstall": False,
    "helpForLocalFile": True,
    "trackLocalFile": False,
    "autoReload": False,
    "features": None,
    "blacklist": None,
    "syncScriptStatus": True,
    "sync": None,
    "customCSS": "",
    "importScriptData": True,
    "importSettings": True,
    "notifyUpdates": False,
    "notifyUpdatesGlobal": False,
    "defaultInjectInto": "auto",
    "xhrInject": False,
    "filters": {
        "searchScope": "name",
        "showOrder": False,
        "sort": "exec",
        "viewSingleColumn": False,
        "viewTable": False,
    },
    "filtersPopup": {
        "sort": "exec",
        "enabledFirst": False,
        "groupRunAt": True,
        "hideDisabled": None,
    },
    "editor": {
        "lineWrapping": False,
        "indentWithTabs": False,
        "indentUnit": 2,
        "tabSize": 2,
        "undoDepth": 500,
    },
    "editorTheme": "",
    "editorThemeName": None,
    "editorWindow": False,
    "editorWindowPos": {},
    "editorWindowSimple": True,
    "showAdvanced": True,
    SCRIPT_TEMPLATE_KEY: SCRIPT_TEMPLATE,
    "uiTheme": "",
}

DEFAULT_OPTIONS: MappingProxyType[str, Any] = MappingProxyType(_DEFAULTS)

DEFAULT_MIGRATIONS: tuple[MigrationRule, ...] = (
    MigrationRule(key=SCRIPT_TEMPLATE_KEY, legacy=LEGACY_SCRIPT_TEMPLATE),
)

#: Keys written by older releases that no longer mean anything.
OBSOLETE_KEYS: frozenset[str] = frozenset({f"{SCRIPT_TEMPLATE_KEY}Edited"})
