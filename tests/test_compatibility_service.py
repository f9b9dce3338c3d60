from __future__ import annotations

from pathlib import Path

import pytest

from retrofit.backend.handlers.registry_handler import MemoryRegistry, RegistryLocation, WindowsRegistry
from retrofit.backend.models.errors import RegistryWriteError
from retrofit.backend.services.compatibility_service import CompatibilityService, COMPAT_LAYERS_KEY

EXE = Path("C:/Games/Steam/steamapps/common/Army Men II/ArmyMen2.exe")


def test_apply_writes_layers_value():
    registry = MemoryRegistry()
    service = CompatibilityService(registry, ["winxpsp3", "HIGHDPIAWARE"])

    value = service.apply(EXE)

    assert value == "~ WINXPSP3 HIGHDPIAWARE"
    location = RegistryLocation("HKEY_CURRENT_USER", COMPAT_LAYERS_KEY, str(EXE))
    assert registry.read(location) == value


def test_apply_keeps_existing_flags():
    registry = MemoryRegistry({CompatibilityService.location_for(EXE): "~ RUNASADMIN HIGHDPIAWARE"})
    service = CompatibilityService(registry, ["WINXPSP3", "HIGHDPIAWARE"])

    assert service.apply(EXE) == "~ RUNASADMIN HIGHDPIAWARE WINXPSP3"


def test_dry_run_registry_reads_through_but_keeps_writes():
    real = MemoryRegistry({CompatibilityService.location_for(EXE): "~ RUNASADMIN"})
    dry = MemoryRegistry(fallback=real)

    CompatibilityService(dry, ["WINXPSP3"]).apply(EXE)

    assert real.read(CompatibilityService.location_for(EXE)) == "~ RUNASADMIN"
    assert dry.read(CompatibilityService.location_for(EXE)) == "~ RUNASADMIN WINXPSP3"


def test_windows_registry_unavailable(monkeypatch):
    import builtins

    real_import = builtins.__import__

    def no_winreg(name, *args, **kwargs):
        if name == "winreg":
            raise ImportError("No module named 'winreg'")
        return real_import(name, *args, **kwargs)

    monkeypatch.setattr(builtins, "__import__", no_winreg)
    registry = WindowsRegistry()
    location = CompatibilityService.location_for(EXE)

    with pytest.raises(OSError):
        registry.read(location)
    with pytest.raises(RegistryWriteError):
        registry.write(location, "~ WINXPSP3")
