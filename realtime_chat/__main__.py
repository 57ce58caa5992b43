from realtime_chat.cli import main

main()
