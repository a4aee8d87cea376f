from drs_care.api_server import main

main()
