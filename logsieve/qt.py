# Qt binding selection for the optional Qt adapter
# Exposes QtCore/QtGui/QtWidgets names from the first available binding; HAVE_QT is False if none is installed

import importlib
import sys


QT_BINDINGS = ['PyQt6', 'PySide6', 'PyQt5', 'PySide2']


def _find_binding():
    # prefer a binding the application has already imported
    for name in QT_BINDINGS:
        if name in sys.modules:
            return name
    for name in QT_BINDINGS:
        try:
            importlib.import_module(name)
        except ImportError:
            continue
        return name
    return None


def _binding_namespace(binding):
    ns = {}
    for submodule in ('QtCore', 'QtGui', 'QtWidgets'):
        ns.update(importlib.import_module(binding + '.' + submodule).__dict__)
    return ns


QT_LIB = _find_binding()
HAVE_QT = QT_LIB is not None

if HAVE_QT:
    globals().update(_binding_namespace(QT_LIB))

    if 'PySide' not in QT_LIB:
        Signal = pyqtSignal  # noqa: F821  (PySide spelling)

    def make_qapp():
        """Return the running QApplication, creating one if needed."""
        app = QApplication.instance()  # noqa: F821
        if app is None:
            app = QApplication([])  # noqa: F821
        return app
