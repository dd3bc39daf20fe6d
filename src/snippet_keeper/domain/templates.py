"""
新規スニペットのテンプレート

ホストの機能記述に応じて、新規スニペットの初期コンテンツを選択します。
"""

import textwrap

from .models import HostCapabilities, Snippet


def strip_spaces(text: str) -> str:
    """インデントと前後の空行を除去"""
    return textwrap.dedent(text).strip("\n")


HOST_SPECIFIC_SCRIPT_TEMPLATE = strip_spaces("""
    {namespace}.run(function(context) {{
        // insert your code here...
        return context.sync();
    }}).catch(function(error) {{
        console.log(error);
        if (error instanceof OfficeExtension.Error) {{
            console.log("Debug info: " + JSON.stringify(error.debugInfo));
        }}
    }});
""")

LEGACY_OFFICE_SCRIPT = strip_spaces("""
    Office.context.document.getSelectedDataAsync(Office.CoercionType.Text,
        function (asyncResult) {
            if (asyncResult.status === Office.AsyncResultStatus.Failed) {
                console.log(asyncResult.error.message);
            } else {
                console.log('Selected data is ' + asyncResult.value);
            }
        }
    );
""")

GENERIC_SCRIPT = 'console.log("Hello world");'

OFFICE_LIBRARIES = strip_spaces("""
    # Office.js CDN reference
    //appsforoffice.microsoft.com/lib/1/hosted/Office.js

    # NPM CDN references
    jquery
    office-ui-fabric/dist/js/jquery.fabric.min.js
    office-ui-fabric/dist/css/fabric.min.css
    office-ui-fabric/dist/css/fabric.components.min.css

    # IntelliSense definitions
    //raw.githubusercontent.com/DefinitelyTyped/DefinitelyTyped/master/office-js/office-js.d.ts
    //raw.githubusercontent.com/DefinitelyTyped/DefinitelyTyped/master/jquery/jquery.d.ts

    # Note: for any "loose" typescript definitions, you can paste them at the bottom of your TypeScript/JavaScript code in the "Script" tab.
""")

GENERIC_LIBRARIES = strip_spaces("""
    # NPM CDN references
    jquery
    office-ui-fabric/dist/js/jquery.fabric.min.js
    office-ui-fabric/dist/css/fabric.min.css
    office-ui-fabric/dist/css/fabric.components.min.css

    # IntelliSense definitions
    //raw.githubusercontent.com/DefinitelyTyped/DefinitelyTyped/master/jquery/jquery.d.ts

    # Note: for any "loose" typescript definitions, you can paste them at the bottom of your TypeScript/JavaScript code in the "Script" tab.
""")


def use_host_specific_api_sample(capabilities: HostCapabilities) -> bool:
    """
    ホスト固有 API のサンプルを使うか判定

    Args:
        capabilities: ホストの機能記述

    Returns:
        bool: 名前空間があり、かつ（アドインの場合）"<namespace>Api" がサポートされていれば True
    """
    if capabilities.context_namespace is None:
        return False
    # 古いクライアント上のアドインでは Office 2013 形式に戻す
    if capabilities.is_addin and not capabilities.is_set_supported(
        capabilities.context_namespace + "Api"
    ):
        return False
    return True


def create_blank_office_snippet(capabilities: HostCapabilities) -> Snippet:
    """Office ホスト向けの新規スニペット"""
    if use_host_specific_api_sample(capabilities):
        script = HOST_SPECIFIC_SCRIPT_TEMPLATE.format(namespace=capabilities.context_namespace)
    else:
        script = LEGACY_OFFICE_SCRIPT
    return Snippet(script=script, libraries=OFFICE_LIBRARIES)


def create_blank_generic_snippet() -> Snippet:
    """ホストに依存しない新規スニペット"""
    return Snippet(script=GENERIC_SCRIPT, libraries=GENERIC_LIBRARIES)


def create_blank_snippet(capabilities: HostCapabilities) -> Snippet:
    """
    コンテキストに応じた新規スニペットを作成

    Args:
        capabilities: ホストの機能記述

    Returns:
        Snippet: ID 未割り当て・デフォルト名の新規スニペット
    """
    if capabilities.is_office_context:
        return create_blank_office_snippet(capabilities)
    return create_blank_generic_snippet()
