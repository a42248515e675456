from brochure_ingest.config import JobConfig


def test_from_activity_payload_ignores_unknown_keys() -> None:
    config = JobConfig.from_activity_payload({"records_dir": "in", "batch_size": 4, "unexpected": True})

    assert config.records_dir == "in"
    assert config.batch_size == 4


def test_payload_roundtrip_and_copy() -> None:
    config = JobConfig(records_dir="in", output_dir="out", llm_enabled=False)
    restored = JobConfig.from_activity_payload(config.to_activity_payload())

    assert restored.output_dir == "out"
    assert restored.llm_enabled is False
    assert config.copy(batch_size=2).batch_size == 2


def test_workflow_id_prefix_value() -> None:
    assert JobConfig().workflow_id_prefix_value() == "brochure"
    assert JobConfig(workflow_id_prefix="  ").workflow_id_prefix_value() == "brochure"
    assert JobConfig(workflow_id_prefix=" nightly ").workflow_id_prefix_value() == "nightly"
