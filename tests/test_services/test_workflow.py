"""
Tests for workflow rendering.
"""

import pytest


@pytest.mark.parametrize(
    "variant,command",
    [("release", "assembleRelease"), ("debug", "assembleDebug"), ("Release", "assembleRelease"), ("staging", "assemble")],
)
def test_build_command(variant, command):
    from apkbuilder.services.github.workflow import build_command

    assert build_command(variant) == command


def test_render_embeds_credentials():
    from apkbuilder.services.github.workflow import render_workflow

    content = render_workflow("release", "123:abc", "42")

    assert "./gradlew assembleRelease" in content
    assert "to: 42" in content
    assert "token: 123:abc" in content
    assert "default: release" in content
    assert "workflow_dispatch:" in content


def test_render_keeps_actions_expressions():
    from apkbuilder.services.github.workflow import render_workflow

    content = render_workflow("debug", "t", "c")

    assert "${{ steps.find_apk.outputs.APK_PATH }}" in content
    assert "${{ github.repository }}" in content
    assert "%%" not in content


def test_render_with_secret_store():
    from apkbuilder.services.github.workflow import render_workflow

    content = render_workflow("debug", "123:abc", "42", use_secret_store=True)

    assert "123:abc" not in content
    assert "token: ${{ secrets.TELEGRAM_BOT_TOKEN }}" in content
    assert "to: ${{ secrets.TELEGRAM_CHAT_ID }}" in content


def test_custom_input_name():
    from apkbuilder.services.github.workflow import render_workflow

    content = render_workflow("debug", "t", "c", workflow_input="variant")

    assert "      variant:\n" in content
