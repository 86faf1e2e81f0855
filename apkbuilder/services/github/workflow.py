"""
GitHub Actions workflow document for Android builds.
"""

from string import Template

from apkbuilder.core.logging import get_logger

logger = get_logger(__name__)

SECRET_TOKEN_REF = "${{ secrets.TELEGRAM_BOT_TOKEN }}"
SECRET_CHAT_REF = "${{ secrets.TELEGRAM_CHAT_ID }}"


class _WorkflowTemplate(Template):
    # "$" is taken by shell and GitHub expressions
    delimiter = "%%"


_WORKFLOW = _WorkflowTemplate("""\
name: Android CI with APK Builder

on:
  workflow_dispatch:
    inputs:
      %%workflow_input:
        description: Build variant
        required: false
        default: %%build_variant

jobs:
  build:
    runs-on: ubuntu-latest

    steps:
    - name: 🚀 Checkout code
      uses: actions/checkout@v4

    - name: ⚙️ Set up JDK 17
      uses: actions/setup-java@v4
      with:
        java-version: '17'
        distribution: 'temurin'

    - name: 🤖 Setup Android SDK
      uses: android-actions/setup-android@v3

    - name: ✅ Accept Android Licenses
      run: yes | sdkmanager --licenses

    - name: 🏗️ Build APK
      run: |
        chmod +x gradlew
        ./gradlew clean
        ./gradlew %%build_command

    - name: 🔍 Find APK
      id: find_apk
      run: |
        APK_PATH=$(find . -name "*.apk" | grep -v "unsigned" | head -1)
        if [ -z "$APK_PATH" ]; then
          APK_PATH=$(find . -name "*%%build_variant*.apk" | head -1)
        fi
        echo "APK_PATH=$APK_PATH" >> $GITHUB_OUTPUT

    - name: 📤 Send to Telegram
      uses: appleboy/telegram-action@master
      with:
        to: %%notifier_chat_id
        token: %%notifier_token
        document: ${{ steps.find_apk.outputs.APK_PATH }}
        caption: |
          🚀 APK Build Complete!
          📦 Project: ${{ github.repository }}
          📱 Build Type: %%build_variant

    - name: 📊 Build Report
      if: always()
      run: |
        echo "Repository: ${{ github.repository }}"
        echo "Build Type: %%build_variant"
        echo "APK Path: ${{ steps.find_apk.outputs.APK_PATH }}"
        echo "Status: ${{ job.status }}"
""")


def build_command(build_variant: str) -> str:
    """Map a build variant to its Gradle task."""
    variant = build_variant.strip().lower()
    if variant == "release":
        return "assembleRelease"
    if variant == "debug":
        return "assembleDebug"
    return "assemble"


def render_workflow(
    build_variant: str,
    notifier_token: str,
    notifier_chat_id: str,
    *,
    workflow_input: str = "build_type",
    use_secret_store: bool = False,
) -> str:
    """
    Render the workflow YAML for a build variant.

    With ``use_secret_store`` the Telegram credentials are referenced from
    the repository's Actions secrets instead of being written into the file.
    """
    if use_secret_store:
        token, chat_id = SECRET_TOKEN_REF, SECRET_CHAT_REF
    else:
        logger.warning("Notifier credentials are embedded in plaintext in the committed workflow file")
        token, chat_id = notifier_token, notifier_chat_id

    return _WORKFLOW.substitute(
        workflow_input=workflow_input,
        build_variant=build_variant,
        build_command=build_command(build_variant),
        notifier_token=token,
        notifier_chat_id=chat_id,
    )
