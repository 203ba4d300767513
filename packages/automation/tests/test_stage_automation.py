"""StageAutomationService 测试"""

from caseflow.automation import StageAutomationService


async def _template(template_store, title: str, **overrides):
    data = {
        "title": title,
        "description": f"{title} description",
        "category": "General",
        "assigned_role": "Associate",
        "stage_scope": ["Demand"],
    }
    data.update(overrides)
    return await template_store.create(data)


class TestHandleStageChange:
    """阶段变更自动化"""

    async def test_runs_matching_bundles_and_templates(
        self,
        make_orchestrator,
        template_store,
        bundle_store,
        make_bundle,
        bundle_item,
        make_context,
    ):
        matching = await make_bundle([bundle_item("a"), bundle_item("b")])
        await make_bundle([bundle_item("x")], stages=["Tribunal"])
        await make_bundle([bundle_item("y")], trigger="hearing_scheduled")
        await make_bundle([bundle_item("z")], status="Draft")

        auto = await _template(template_store, "Auto", auto_create_on_stage_change=True)
        suggested = await _template(template_store, "Suggest", suggest_on_stage_change=True)
        await _template(template_store, "Quiet")
        await _template(
            template_store,
            "Elsewhere",
            stage_scope=["Tribunal"],
            auto_create_on_stage_change=True,
        )

        service = StageAutomationService(template_store, bundle_store, make_orchestrator())
        report = await service.handle_stage_change(make_context(stage="Demand"))

        assert [r.bundle_id for r in report.bundle_results] == [matching.id]
        assert [t.source_id for t in report.template_tasks] == [auto.id]
        assert [t.id for t in report.suggested_templates] == [suggested.id]
        assert report.total_tasks_created == 3

    async def test_trigger_event_selects_bundles(
        self,
        make_orchestrator,
        template_store,
        bundle_store,
        make_bundle,
        bundle_item,
        make_context,
    ):
        hearing = await make_bundle(
            [bundle_item("brief")],
            trigger="hearing_scheduled",
            stages=["Adjudication"],
            execution_mode="Parallel",
        )
        await make_bundle([bundle_item("a")], stages=["Adjudication"])

        service = StageAutomationService(template_store, bundle_store, make_orchestrator())
        report = await service.handle_stage_change(
            make_context(stage="Adjudication", trigger_event="hearing_scheduled")
        )

        assert [r.bundle_id for r in report.bundle_results] == [hearing.id]

    async def test_failed_template_is_reported(
        self, make_orchestrator, make_flaky_sink, template_store, bundle_store, make_context
    ):
        broken = await _template(template_store, "Broken", auto_create_on_stage_change=True)
        await _template(template_store, "Works", auto_create_on_stage_change=True)

        orchestrator = make_orchestrator(task_sink=make_flaky_sink({"Broken"}))
        service = StageAutomationService(template_store, bundle_store, orchestrator)
        report = await service.handle_stage_change(make_context())

        assert report.failed_templates == [broken.id]
        assert [t.title for t in report.template_tasks] == ["Works"]
