import analysis
import models
import persistence


def test_package_exports():
    assert hasattr(models, "compute_metrics")
    assert hasattr(models, "SimulationInputs")
    assert hasattr(models, "CostLedger")
    assert hasattr(analysis, "SensitivityAnalyzer")
    assert hasattr(analysis, "SweepRange")
    assert hasattr(persistence, "import_state")
    assert hasattr(persistence, "SessionStore")
