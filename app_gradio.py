import argparse

from ui_module.ui import MasterEditorUI

def get_args():
    parser = argparse.ArgumentParser()
    parser.add_argument("--port", type=int, help="server port", default=7999)
    return parser.parse_args()

if __name__ == "__main__":
    args = get_args()
    ui = MasterEditorUI()
    app = ui.create_interface()
    app.launch(server_port=args.port)
